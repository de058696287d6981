from collections.abc import Hashable

type Liquidity = int
type LiquidityGross = int
type LiquidityNet = int
type Pip = int  # fees are expressed in pips, parts per million
type PositionId = int
type PositionOwner = Hashable
type SqrtPriceX96 = int
type Tick = int
type Timestamp = int  # seconds, supplied by the caller
type X128 = int  # Q128 fixed-point value
