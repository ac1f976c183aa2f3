from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SR_",
    )

    # Default simulation parameters
    default_initial_investment: float = 100_000.0
    default_horizon_days: int = 30
    default_trial_count: int = 10_000
    default_mean_daily_return: float = 0.0006
    default_daily_volatility: float = 0.012  # ~19% annualised
    default_current_price: float = 596.56

    # Execution
    simulation_max_workers: int = 1
    simulation_chunk_size: int = 2000
    simulation_seed: int | None = None  # None = fresh entropy per run

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]
    max_trial_count: int = 1_000_000
    max_path_cells: int = 50_000_000  # trial_count * horizon_days per request
    sample_preview_size: int = 1000

    # Cache (seeded requests only)
    cache_ttl: int = 300  # seconds

    # Logging
    log_dir: str = "logs"
