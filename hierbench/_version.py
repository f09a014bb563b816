"""Version information for hierbench."""

__version__ = "0.1.0.0"
__author__ = "Hierbench Contributors"
__email__ = "hierbench@users.noreply.github.com"
