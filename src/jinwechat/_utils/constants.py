# Environment variables
ENV_BASE_URL = "JINWECHAT_URL"
ENV_ACCESS_TOKEN = "JINWECHAT_TOKEN"
ENV_RESPONSE_TYPE = "JINWECHAT_RESPONSE_TYPE"

# Headers
HEADER_USER_AGENT = "User-Agent"
USER_AGENT = "jinwechat-python"

# Query parameter carrying the access token
TOKEN_QUERY_KEY = "token"

# Remote error codes meaning "access token invalid or expired"
TOKEN_EXPIRED_ERROR_CODES = frozenset({40001, 42001})

# Config keys
CONFIG_RESPONSE_TYPE = "response_type"
CONFIG_HTTP_RETRIES = "http.retries"
CONFIG_HTTP_RETRY_DELAY = "http.retry_delay"
CONFIG_HTTP_LOG_TEMPLATE = "http.log_template"
CONFIG_HTTP_MIDDLEWARES = "http.middlewares"

DEFAULT_RETRIES = 1
DEFAULT_RETRY_DELAY_MS = 500
