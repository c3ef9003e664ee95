"""
Utility package for music-uploader

logger.py     - console/file logging setup and the tqdm backed OperationLogger
helpers.py    - search term normalization, formatting and the async retry decorator
validation.py - validation of user supplied settings and CLI arguments
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    get_current_log_file,
    OperationLogger,
    create_operation_logger,
)

from .helpers import (
    build_search_term,
    format_duration,
    truncate_string,
    retry_on_failure,
)

from .validation import (
    validate_storefront,
    validate_playlists_directory,
    validate_concurrency,
)

__all__ = [
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'get_current_log_file',
    'OperationLogger',
    'create_operation_logger',

    'build_search_term',
    'format_duration',
    'truncate_string',
    'retry_on_failure',

    'validate_storefront',
    'validate_playlists_directory',
    'validate_concurrency',
]
