"""SketchCalc: draw a math problem, let a Bedrock model read and solve it."""

__version__ = "0.1.0"
