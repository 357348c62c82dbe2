"""
*polyflood*

Reordering implicit transport of water saturation and polymer concentration
for two-phase polymer flooding.
"""

from .errors import *  # noqa
from .types import *  # noqa
from .config import *  # noqa
from .grids import *  # noqa
from .relperm import *  # noqa
from .properties import *  # noqa
from .polymer import *  # noqa
from .physics import *  # noqa
from .transport.flux import *  # noqa
from .transport.roots import *  # noqa
from .transport.residuals import *  # noqa
from .transport.paths import *  # noqa
from .transport.bracketing import *  # noqa
from .transport.splitting import *  # noqa
from .transport.cells import *  # noqa
from .reorder import *  # noqa
from .model import *  # noqa
