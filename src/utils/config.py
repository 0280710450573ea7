"""Configuration utility for the integration gateway.

This module provides centralized configuration management with:
- Environment variables as the only source
- Type-safe access to configuration values

Identifiers and secrets (client ids, signing secrets) must be read with
get_config_value_str: get_config_value coerces numeric strings to int, which
would mangle e.g. a TikTok app id.
"""

import os
from typing import Any


def parse_config_value(value: str) -> str | bool | int | float:
    if value.lower() == "true":
        return True
    elif value.lower() == "false":
        return False
    else:
        # Try to parse as a number
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                # Return as string
                return value


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a configuration value from environment variables.

    Args:
        key: Configuration key name (e.g., "DATABASE_URL")
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    env_value = os.environ.get(key)
    if env_value is not None:
        return parse_config_value(env_value)

    return default


def get_config_value_str(key: str) -> str | None:
    """
    Get a configuration value from environment variables. But sometimes you just want a string.
    """
    return os.environ.get(key)


def require_config_value(key: str) -> str:
    value = os.environ.get(key)
    if value is None:
        raise ValueError(f"Environment variable {key} is required")
    return value


def get_gateway_environment() -> str:
    """Get gateway environment from env var."""
    return get_config_value("GATEWAY_ENVIRONMENT", "local")


def get_database_url() -> str:
    """Get database connection URL.

    Returns:
        PostgreSQL connection string from DATABASE_URL config

    Raises:
        ValueError: If DATABASE_URL is not configured
    """
    url = get_config_value_str("DATABASE_URL")
    if url:
        return url

    raise ValueError("Database URL not found. Please provide DATABASE_URL environment variable")


def get_shopify_webhook_secret() -> str | None:
    """Get the shared secret Shopify signs webhook bodies with."""
    return get_config_value_str("SHOPIFY_WEBHOOK_SECRET")


def get_webhook_jobs_queue_arn() -> str | None:
    """Get the SQS queue ARN (or URL) that webhook jobs are published to."""
    return get_config_value_str("WEBHOOK_JOBS_QUEUE_ARN")


def get_sqs_extended_s3_bucket() -> str | None:
    """Get S3 bucket name for storing large webhook payloads."""
    return get_config_value_str("SQS_EXTENDED_S3_BUCKET")


def get_sqs_extended_enabled() -> bool:
    """Get whether SQS extended client is enabled.

    Defaults to True if S3 bucket is configured, False otherwise.
    """
    bucket = get_sqs_extended_s3_bucket()
    default_enabled = bucket is not None
    return get_config_value("SQS_EXTENDED_ENABLED", default_enabled)


def get_supabase_url() -> str | None:
    """Get the Supabase project URL used to resolve user sessions."""
    url = get_config_value_str("SUPABASE_URL")
    return url.rstrip("/") if url else None


def get_supabase_service_role_key() -> str | None:
    """Get the Supabase service role key sent as the `apikey` header."""
    return get_config_value_str("SUPABASE_SERVICE_ROLE_KEY")


def get_app_base_url() -> str:
    """Get the public app origin used when a request carries no Origin header."""
    return get_config_value_str("APP_BASE_URL") or "http://localhost:3000"


def get_oauth_http_timeout_seconds() -> float:
    """Get the timeout for outbound token-exchange calls."""
    return float(get_config_value("OAUTH_HTTP_TIMEOUT_SECONDS", 30.0))


def get_database_command_timeout_seconds() -> float:
    """Get the per-statement timeout for control database queries."""
    return float(get_config_value("DATABASE_COMMAND_TIMEOUT_SECONDS", 10.0))


def get_dangerously_disable_webhook_validation() -> bool:
    """Allow disabling webhook signature validation for development/testing."""
    return os.getenv("DANGEROUSLY_DISABLE_WEBHOOK_VALIDATION", "").lower() in ("true", "1", "yes")
