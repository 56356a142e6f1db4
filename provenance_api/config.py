from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Blockchain
    RPC_URL: str = ""
    CONTRACT_ADDRESS: str = ""
    PRIVATE_KEY: str = ""  # нужен только для записи
    CHAIN_EXPLORER_TX_URL: str = ""
    CHAIN_NAME: str = ""
    TX_RECEIPT_TIMEOUT: float = 120.0

    # Postgres (пустой URL отключает хранилище)
    DATABASE_URL: str = ""
    PGPOOL_MAX: int = 10
    PGPOOL_IDLE_TIMEOUT_MS: int = 30000
    PGPOOL_CONN_TIMEOUT_MS: int = 5000
    PGSSL: bool = False

    app_name: str = "ProvenanceRegistry"
    debug: bool = False

    def missing(self, *names: str) -> list[str]:
        return [name for name in names if not getattr(self, name, "")]

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.CHAIN_EXPLORER_TX_URL}{tx_hash}"


settings = Settings()


def get_settings() -> Settings:
    return settings


# Вывод диагностики при загрузке
if settings.debug:
    print("\n📋 Configuration loaded:")
    print(f"   app_name: {settings.app_name}")
    print(f"   RPC_URL: {'✅ Set' if settings.RPC_URL else '❌ Missing'}")
    print(f"   CONTRACT_ADDRESS: {settings.CONTRACT_ADDRESS or '❌ Missing'}")
    print(f"   PRIVATE_KEY: {'✅ Set' if settings.PRIVATE_KEY else '❌ Missing'}")
    print(f"   CHAIN_EXPLORER_TX_URL: {settings.CHAIN_EXPLORER_TX_URL or '❌ Missing'}")
    print(f"   DATABASE_URL: {'✅ Set' if settings.DATABASE_URL else '⚠️ not set, persistence disabled'}")
