from hafiz.consts import VERSION

__version__ = VERSION
