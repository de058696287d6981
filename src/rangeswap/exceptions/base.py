class RangeswapError(Exception):
    """
    Base exception used as the parent class for all exceptions raised by this package.

    Calling code should catch `RangeswapError` and derived classes separately before general
    exceptions, e.g.:

    ```
    try:
        pool.swap(...)
    except TooLittleReceived:
        ... # handle a specific exception
    except RangeswapError:
        ... # handle non-specific rangeswap exception
    ```

    An optional string-formatted message may be attached to the exception and retrieved by accessing
    the `.message` attribute.
    """

    message: str | None = None

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
            super().__init__(message)


class RangeswapValueError(RangeswapError): ...


class RangeswapTypeError(RangeswapError): ...
