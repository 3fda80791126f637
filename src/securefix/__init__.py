"""SecureFix: single-line security fixes you can trust."""

from securefix._version import __version__
from securefix.core.config import SecureFixConfig, load_config
from securefix.core.errors import NoFixAvailable
from securefix.core.models import FixOutcome, Strategy, VulnerabilityCategory
from securefix.fix.engine import FixEngine

__all__ = [
    "__version__",
    "FixEngine",
    "FixOutcome",
    "NoFixAvailable",
    "SecureFixConfig",
    "Strategy",
    "VulnerabilityCategory",
    "load_config",
]
