"""Protocol constants shared across fident."""

DEFAULT_HEADER_PREFIX = "X-Fident"
IDENTITY_HEADER_SUFFIX = "-Identity-Id"
SIGNATURE_HEADER_SUFFIX = "-Signature"

DEFAULT_CONFIG_FILE = "fident.yaml"
