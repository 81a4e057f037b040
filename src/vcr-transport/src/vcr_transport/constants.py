#################################################################################
# Censoring

# CENSOR_TEXT is the value written in place of any censored header, query parameter or body element
CENSOR_TEXT = "******"

# DEFAULT_SENSITIVE_HEADERS are censored by Censors.default_sensitive()
DEFAULT_SENSITIVE_HEADERS = [
    "authorization",
    "cookie",
    "proxy-authorization",
    "set-cookie",
    "x-api-key",
    "x-auth-token",
    "api-key",
]

# DEFAULT_SENSITIVE_QUERY_PARAMETERS are censored by Censors.default_sensitive()
DEFAULT_SENSITIVE_QUERY_PARAMETERS = [
    "api_key",
    "apikey",
    "access_token",
    "client_secret",
    "key",
    "token",
]

# DEFAULT_SENSITIVE_BODY_ELEMENTS are censored by Censors.default_sensitive()
DEFAULT_SENSITIVE_BODY_ELEMENTS = [
    "access_token",
    "api_key",
    "client_secret",
    "password",
    "refresh_token",
    "secret",
    "token",
]


#################################################################################
# Recording

# Response headers that are not stored in a cassette.
# The stored body is the decoded body, so encoding/length headers would not describe it on replay
# (Content-Length will automatically be set when the response is rebuilt)
RESPONSE_HEADERS_NOT_RECORDED = [
    "content-encoding",
    "content-length",
    "transfer-encoding",
]

# CASSETTE_FORMAT_VERSION is written to every cassette file
CASSETTE_FORMAT_VERSION = 1


#################################################################################
# httpx response.extensions keys
# These are keys for 'well-known' values stored in the extensions dictionary of returned responses.

# PERSISTENCE_ERROR_EXTENSION stores a PersistenceError when a recorded interaction could not be saved
PERSISTENCE_ERROR_EXTENSION = "vcr_persistence_error"

# REPLAYED_EXTENSION is set to True on responses synthesized from a cassette
REPLAYED_EXTENSION = "vcr_replayed"
