# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import (  # noqa: F401
    metrics_blueprint,
    record_like_toggle,
    record_login,
    record_otp_sent,
    record_play,
    record_signup,
    record_upload,
)
from .tracing import init_tracing  # noqa: F401
