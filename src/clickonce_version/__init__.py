import datetime
import logging
import os

import colorlog

__version__ = "0.1.0"

# Configure logging.
# `export DEBUG=1` (or pass --verbose) to see debug output.
# `mkdir logs` to write to files too.
# Create loggers with `import logging; logger = logging.getLogger(__name__)`

def _default_level():
    return logging.INFO if not os.environ.get('DEBUG') else logging.DEBUG

module_logger = logging.getLogger(__name__)
module_logger.setLevel(_default_level())
main_logger = logging.getLogger('__main__')
main_logger.setLevel(_default_level())

console_handler = logging.StreamHandler()
console_handler.setLevel(logging.DEBUG)
console_handler.setFormatter(colorlog.ColoredFormatter(
    '%(log_color)s%(asctime)s %(levelname)-6s %(cyan)s%(name)-10s %(white)s%(message)s',
    "%H:%M:%S",
    log_colors={
        'DEBUG': 'blue',
        'INFO': 'green',
        'WARNING': 'yellow',
        'ERROR': 'red',
        'CRITICAL': 'bold_red',
    }))

file_handler = None
package_timestamp = datetime.datetime.now().strftime('%Y%m%dT%H%M%S')
if os.path.isdir('logs'):
    file_handler = logging.FileHandler(os.path.join('logs', f'{__name__}_{package_timestamp}.log'), mode='a')
    file_handler.setLevel(_default_level())
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    module_logger.addHandler(file_handler)
    main_logger.addHandler(file_handler)

module_logger.addHandler(console_handler)
main_logger.addHandler(console_handler)

def set_verbose(verbose : bool=True) -> None:
    """Switch both package loggers (and the file log, if any) between the default level and DEBUG."""
    level = logging.DEBUG if verbose else _default_level()
    module_logger.setLevel(level)
    main_logger.setLevel(level)
    if file_handler is not None:
        file_handler.setLevel(level)
