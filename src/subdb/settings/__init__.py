from .manager import check_environment, format_validation_error, load_settings  # noqa: F401
from .models import DEFAULT_BASE_URL, SubDBSettings  # noqa: F401
