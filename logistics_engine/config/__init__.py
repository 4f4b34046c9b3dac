import os

from pydantic_settings import BaseSettings, SettingsConfigDict

# --- DYNAMIC PATH CONFIGURATION ---
# logistics_engine/config/__init__.py -> parent is config -> parent is logistics_engine -> parent is project root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# --- ENGINE PATHS ---
KNOWLEDGE_BASE_DIR = os.path.join(BASE_DIR, "logistics_engine", "knowledge_base")

# --- INPUT / OUTPUT ---
DATA_DIR = os.path.join(BASE_DIR, "data")
STORAGE_DIR = os.path.join(KNOWLEDGE_BASE_DIR, "storage")
REPORT_CATEGORY = "logistics_report"

# Expected CSV file name for each table of the ups_logistics schema
TABLE_FILES = {
    "orders": "orders.csv",
    "routes": "routes.csv",
    "warehouses": "warehouses.csv",
    "delivery_agents": "delivery_agents.csv",
    "shipment_tracking": "shipment_tracking.csv",
}


class Settings(BaseSettings):
    """Report thresholds and runtime options loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="LOGISTICS_",
        env_file=".env",
        extra="ignore",
    )

    # Route analysis
    TOP_DELAYED_ROUTES: int = 10
    LEAST_EFFICIENT_ROUTES: int = 3
    DELAYED_SHARE_THRESHOLD: float = 20.0  # percent

    # Warehouse analysis
    TOP_BOTTLENECK_WAREHOUSES: int = 3

    # Agent analysis
    AGENT_SLA_PERCENTAGE: float = 80.0
    AGENT_GROUP_SIZE: int = 5

    # Shipment tracking
    SEVERE_DELAY_CHECKPOINTS: int = 2

    # Runtime
    LOG_LEVEL: str = "INFO"
    DATA_DIR: str = DATA_DIR
    STORAGE_DIR: str = STORAGE_DIR
    BASE_URL: str = "http://localhost:8000"


# Create settings instance
settings = Settings()
