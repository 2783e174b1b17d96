"""
Version constants for the IMAP proxy.

Component versions are reported by the health endpoint and the decode CLI so
that decoded output can be traced back to the decoder that produced it.
"""

# API Version
API_VERSION = "1.0.0"

# Component versions (update these when implementations change)
DECODER_VERSION = "mime-decoder-1.0.0"
SNIPPET_VERSION = "snippet-1.0.0"


def get_component_versions() -> dict[str, str]:
    """
    Get current component version map.

    Returns:
        Mapping of component name to version string
    """
    return {
        "api": API_VERSION,
        "decoder": DECODER_VERSION,
        "snippet": SNIPPET_VERSION,
    }
