from dataclasses import dataclass
from pathlib import Path
import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str = "WorkPulse Authorization Service"
    api_version: str = "v1"
    secret_key: str = os.getenv("WORKPULSE_SECRET_KEY", "change-me-for-production")
    algorithm: str = os.getenv("WORKPULSE_JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    data_dir: Path = Path(os.getenv("WORKPULSE_DATA_DIR", str(Path(__file__).resolve().parents[2] / "data")))
    role_table_path: Path = Path(
        os.getenv("WORKPULSE_ROLE_TABLE", str(Path(__file__).resolve().parents[1] / "data" / "default_roles.json"))
    )
    staff_seed_path: Path = Path(
        os.getenv("WORKPULSE_STAFF_SEED", str(Path(__file__).resolve().parents[1] / "data" / "staff_seed.json"))
    )
    audit_decisions: bool = _env_flag("WORKPULSE_AUDIT_DECISIONS", "true")
    log_level: str = os.getenv("WORKPULSE_LOG_LEVEL", "INFO")

    @property
    def event_log_path(self) -> Path:
        return self.data_dir / "events.jsonl"

    @property
    def report_dir(self) -> Path:
        return self.data_dir / "reports"


settings = Settings()
settings.data_dir.mkdir(parents=True, exist_ok=True)
