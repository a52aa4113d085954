"""Launch pool blueprints and the runtime that hosts them."""

__version__ = '0.1.0'
