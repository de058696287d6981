import logging

"""
Package-wide logger. Pools, the position manager and the token ledger write to it; callers may
attach their own handlers or adjust the level.
"""

logger = logging.getLogger("rangeswap")
logger.propagate = False
logger.setLevel(logging.INFO)

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
logger.addHandler(_handler)
