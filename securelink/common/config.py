"""
Runtime configuration.

Settings are read from the process environment, after loading a .env file
if one is present, and validated with Pydantic.
"""

import os
from typing import Optional
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from ..crypto import CIPHER_SUITES, get_cipher_suite
from ..crypto.dh import SUPPORTED_GROUP_SIZES, KeyExchangeEngine


class Settings(BaseModel):
    """Configuration shared by the server and client collaborators."""
    host: str = Field('127.0.0.1', description="Bind / connect address")
    port: int = Field(5000, ge=0, le=65535, description="TCP port (0: any free port)")
    dh_key_size: int = Field(1024, description="Built-in DH group size in bits")
    dh_params_path: Optional[str] = Field(None, description="PEM DH parameters file")
    cipher_suite: str = Field('des-ecb', description="Session cipher suite")
    entry_port: int = Field(0, ge=0, le=65535, description="Entry port the client announces")
    verbose: bool = True

    @field_validator('dh_key_size')
    @classmethod
    def check_key_size(cls, value: int) -> int:
        if value not in SUPPORTED_GROUP_SIZES:
            raise ValueError(f"DH key size must be one of {sorted(SUPPORTED_GROUP_SIZES)}")
        return value

    @field_validator('cipher_suite')
    @classmethod
    def check_cipher_suite(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in CIPHER_SUITES:
            raise ValueError(f"Cipher suite must be one of {sorted(CIPHER_SUITES)}")
        return value

    @field_validator('dh_params_path', mode='before')
    @classmethod
    def blank_path_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def build_engine(self) -> KeyExchangeEngine:
        """Key exchange engine for the configured DH group."""
        if self.dh_params_path:
            return KeyExchangeEngine.from_params_file(self.dh_params_path)
        return KeyExchangeEngine(key_size=self.dh_key_size)

    def build_cipher(self):
        """Session cipher for the configured suite."""
        return get_cipher_suite(self.cipher_suite)


def load_settings(env_file: Optional[str] = None, **overrides) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional path to a .env file (default: search upwards
            from the working directory)
        **overrides: Explicit values, e.g. from command-line arguments.
            None values are ignored.

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a value is invalid
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    values = {
        'host': os.getenv('SERVER_HOST', '127.0.0.1'),
        'port': os.getenv('SERVER_PORT', 5000),
        'dh_key_size': os.getenv('DH_KEY_SIZE', 1024),
        'dh_params_path': os.getenv('DH_PARAMS_PATH'),
        'cipher_suite': os.getenv('CIPHER_SUITE', 'des-ecb'),
        'entry_port': os.getenv('ENTRY_PORT', 0),
        'verbose': os.getenv('VERBOSE', True),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    return Settings(**values)
