from typing import Annotated

from pydantic import Field

from rangeswap.constants import MAX_INT24, MAX_UINT160, MIN_UINT160, PIPS_DENOMINATOR

type ValidatedUint160NonZero = Annotated[int, Field(strict=True, gt=MIN_UINT160, le=MAX_UINT160)]

type ValidatedPips = Annotated[int, Field(strict=True, ge=0, lt=PIPS_DENOMINATOR)]
type ValidatedTickSpacing = Annotated[int, Field(strict=True, gt=0, le=MAX_INT24)]
