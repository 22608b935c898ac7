from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    EBAY_BASE_API_URL: str = "https://api.ebay.com"
    EBAY_CLIENT_ID: str
    EBAY_CLIENT_SECRET: str
    EBAY_OAUTH_SCOPE: str = "https://api.ebay.com/oauth/api_scope"
    EBAY_MARKETPLACE_ID: str = "EBAY_US"

    SHOPIFY_SHOP: str
    SHOPIFY_ADMIN_ACCESS_TOKEN: str
    SHOPIFY_API_VERSION: str = "2024-10"

    # Shopify caps productCreateMedia input at 100 entries
    MEDIA_UPLOAD_LIMIT: int = 100
    IMPORT_HISTORY_LIMIT: int = 50

    class Config:
        env_file = ".env"

settings = Settings()
