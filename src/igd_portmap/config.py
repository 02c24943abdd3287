"""Configuration management for igd-portmap."""

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscoveryConfig(BaseModel): # Nested under Config (BaseSettings)
    """Configuration for SSDP discovery of Internet Gateway Devices."""

    timeout_ms: int = Field(default=2000, ge=100, le=60000, description="How long discovery waits for SSDP answers, in milliseconds.")
    local_port: int = Field(default=0, ge=0, le=65535, description="Local UDP port to bind for discovery. 0 means any local port.")
    multicast_interface: Optional[str] = Field(default=None, description="Interface name or address used to send the SSDP multicast (e.g. 'eth0').")
    minissdpd_socket: Optional[str] = Field(default=None, description="Path to a minissdpd socket to query before multicasting.")


class MappingConfig(BaseModel):
    """Defaults applied to port-mapping operations against the router."""

    default_lease_duration: int = Field(default=0, ge=0, description="Lease in seconds for new mappings. 0 asks for a permanent mapping.")
    default_remote_host: str = Field(default="", description="Remote host filter for add/delete. Empty string is the wildcard.")
    end_of_table_codes: List[int] = Field(default_factory=lambda: [713, 714], description="Router result codes that mark the end of the port-mapping table during enumeration.")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format ('json' or 'console')")
    file: Optional[Path] = Field(default=None, description="Log file path")


class Config(BaseSettings):
    """Main configuration for igd-portmap. Loads from environment variables prefixed with IGD_PORTMAP_."""

    model_config = SettingsConfigDict(
        env_prefix='IGD_PORTMAP_',
        env_nested_delimiter='__', # e.g., IGD_PORTMAP_DISCOVERY__TIMEOUT_MS
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    mapping: MappingConfig = Field(default_factory=MappingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.
        Note: This does not layer with environment variables.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
