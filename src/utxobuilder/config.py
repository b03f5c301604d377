"""
Configuration management using pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from utxobuilder.network import NetworkParams, get_network
from utxobuilder.ordering import Ordering


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="UTXOBUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    network: str = "bitcoincash"
    input_ordering: Ordering = Ordering.BIP69
    output_ordering: Ordering = Ordering.BIP69
    enable_rbf: bool = False

    log_level: str = "INFO"

    def get_network(self) -> NetworkParams:
        return get_network(self.network)


def get_settings() -> Settings:
    return Settings()
