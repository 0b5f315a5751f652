"""
Configuration settings for nodeflow.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    # Application
    APP_NAME: str = "nodeflow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    
    # Execution engine
    HTTP_DEFAULT_TIMEOUT_MS: int = 30000
    BRANCH_PRUNING: bool = True  # Follow only the matching conditional branch
    PARALLEL_FAN_OUT: bool = False
    
    # Execution manager
    MAX_EXECUTIONS: int = 1000
    EXECUTION_TTL_SECONDS: int = 3600
    
    # Demo
    REGISTER_DEMO_WORKFLOW: bool = True
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
