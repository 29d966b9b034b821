import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Config:
    # Router defaults - overridable per router via RouterConfig
    # Response validation substitutes a fixed 500 body for out-of-contract responses
    ATTACH_RESPONSE_VALIDATOR = _env_flag('CONTRACT_RESPONSE_VALIDATION', 'true')

    # Turn off when a route accepts bodies pydantic cannot describe (multipart, raw bytes)
    SKIP_REQUEST_BODY_VALIDATION = _env_flag('CONTRACT_SKIP_BODY_VALIDATION', 'false')

    # Client transport
    CLIENT_TIMEOUT_SECONDS = _env_float('CONTRACT_CLIENT_TIMEOUT', 30.0)
    CLIENT_USER_AGENT = os.getenv('CONTRACT_CLIENT_USER_AGENT', 'routecontract/1.0')

    # Request correlation - incoming IDs are echoed, others are generated
    REQUEST_ID_HEADER = os.getenv('CONTRACT_REQUEST_ID_HEADER', 'X-Request-ID')

    # Request log line: sampled, plus path prefixes that are always logged
    REQUEST_LOG_ENABLED = _env_flag('REQUEST_LOG_ENABLED', 'true')
    REQUEST_LOG_SAMPLE_RATE = _env_float('REQUEST_LOG_SAMPLE_RATE', 0.0)
    REQUEST_LOG_ENDPOINTS = [
        p.strip() for p in os.getenv('REQUEST_LOG_ENDPOINTS', '').split(',') if p.strip()
    ]
