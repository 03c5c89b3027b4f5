from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Solana RPC
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout_sec: float = 15.0

    # Launchpad program
    launchpad_program_id: str = "J3Qr5TAMocTrPXrJbjH86jLQ3bCXJaS4hFgaE54zT2jg"
    launch_schema: str = "auto"  # "current", "legacy" or "auto" (infer per buffer)
    max_field_length: int = 10_240  # bytes; longer strings/vectors = corrupted account

    # Token identity
    verify_token_owner: bool = False  # one getAccountInfo per candidate key

    # Bonding curve quotes
    curve_reference_supply: float = 1_000_000_000.0  # supply at which base constants apply unscaled
    quote_max_price_impact_pct: float = 200.0

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


settings = Settings()
