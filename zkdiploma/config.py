"""Configuration management using pydantic-settings.

Issuer key material, trust policy and proof backend selection are read from
ZKDIPLOMA_* environment variables, a .env file or /run/secrets, and passed
explicitly into each call.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from zkdiploma.sdk.models import IssuerKeyPair, TrustPolicy


class ZKDiplomaSettings(BaseSettings):
    """Settings for issuance, verification and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix='ZKDIPLOMA_',
        env_file='.env',
        env_file_encoding='utf-8',
        secrets_dir='/run/secrets'
    )

    issuer_private_key: str | None = Field(
        default=None,
        repr=False,
        description="Issuer Ed25519 private key seed (hex)"
    )
    issuer_public_key: str | None = Field(
        default=None,
        description="Issuer Ed25519 public key (hex)"
    )
    trusted_issuers: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Trusted issuer keys (hex or did:key); empty means permissive"
    )
    proof_backend: str = Field(
        default="reference",
        description="Registered proof backend name"
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level"
    )

    @field_validator('trusted_issuers', mode='before')
    @classmethod
    def split_trusted_issuers(cls, v: object) -> object:
        """Accept comma separated text as well as lists."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode='after')
    def validate_issuer_keys(self) -> ZKDiplomaSettings:
        """Issuer keys must be configured together."""
        if bool(self.issuer_private_key) != bool(self.issuer_public_key):
            raise ValueError("Issuer private and public keys must be set together")
        return self


def issuer_key_pair(settings: ZKDiplomaSettings) -> IssuerKeyPair:
    """Build the configured issuer key pair."""
    if not settings.issuer_private_key or not settings.issuer_public_key:
        raise ValueError("Issuer keys required. Set ZKDIPLOMA_ISSUER_PRIVATE_KEY and ZKDIPLOMA_ISSUER_PUBLIC_KEY.")
    return IssuerKeyPair(private_key=settings.issuer_private_key, public_key=settings.issuer_public_key)


def trust_policy(settings: ZKDiplomaSettings) -> TrustPolicy:
    """Build the verifier trust policy."""
    return TrustPolicy(trusted_issuers=frozenset(settings.trusted_issuers))
