class SketchCalcError(Exception):
    """Base class for every error raised by sketchcalc."""


class InvalidDimensionsError(SketchCalcError, ValueError):
    pass


class FormParseError(SketchCalcError):
    """The multipart upload could not be read."""


class MissingImageError(SketchCalcError):
    """The upload carried no ``imageBlob`` part."""


class UpstreamError(SketchCalcError):
    """The model call (or the relay, seen from the client) failed."""


class ParseError(SketchCalcError):
    """The analysis text is not a well-formed list of result mappings."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


class AnalysisInProgressError(SketchCalcError):
    pass
