# ===============================
# imports
# ===============================
import base64
import logging
from typing import List

import boto3
from langchain_aws import ChatBedrock
from langchain_core.messages import HumanMessage

from .config import DEFAULT_MODEL_ID, AWSCredentials, Settings
from .errors import UpstreamError
from .parsing import AnalysisRecord, parse_analysis

logger = logging.getLogger(__name__)


# ===============================
# prompt
# ===============================
ANALYSIS_PROMPT = """
You have been given an image with some mathematical expressions, equations, or graphical problems, and you need to solve them.
Note: Use the PEMDAS rule for solving mathematical expressions. PEMDAS stands for the Priority Order: Parentheses, Exponents, Multiplication and Division (from left to right), Addition and Subtraction (from left to right).
Parentheses have the highest priority, followed by Exponents, then Multiplication and Division, and lastly Addition and Subtraction.
For example:
Q. 2 + 3 * 4
(3 * 4) => 12, 2 + 12 = 14.
Q. 2 + 3 + 5 * 4 - 8 / 2
5 * 4 => 20, 8 / 2 => 4, 2 + 3 => 5, 5 + 20 => 25, 25 - 4 => 21.
YOU CAN HAVE FIVE TYPES OF EQUATIONS/EXPRESSIONS IN THIS IMAGE, AND ONLY ONE CASE SHALL APPLY EVERY TIME.
Following are the cases:
1. Simple mathematical expressions like 2 + 2, 3 * 4, 5 / 6, 7 - 8, etc.: solve and return the answer as a LIST OF ONE DICT [{'expr': given expression, 'result': calculated answer}].
2. Set of equations like x^2 + 2x + 1 = 0, 3y + 4x = 0, 5x^2 + 6y + 7 = 12, etc.: solve for every variable and return a COMMA SEPARATED LIST OF DICTS, one per variable, e.g. {'expr': 'x', 'result': 2, 'assign': true} and {'expr': 'y', 'result': 5, 'assign': true} if x is 2 and y is 5.
3. Assigning values to variables like x = 4, y = 5, z = 6, etc.: keep the variable as 'expr', the value as 'result', and add the key 'assign': true. RETURN AS A LIST OF DICTS.
4. Graphical math problems, which are word problems drawn as a picture, such as cars colliding, trigonometric problems, problems on the Pythagorean theorem, adding runs from a cricket wagon wheel, etc. PAY CLOSE ATTENTION TO DIFFERENT COLORS FOR THESE PROBLEMS. Return a LIST OF ONE DICT [{'expr': given expression, 'result': calculated answer}].
5. Abstract concepts a drawing might show, such as love, hate, jealousy, patriotism, or a historic reference to war, invention, discovery, quote, etc. Use the same format, where 'expr' is the explanation of the drawing and 'result' is the abstract concept.
Analyze the equation or expression in this image and return the answer according to the given rules.
Make sure to use extra backslashes for escape characters like \\f -> \\\\f, \\n -> \\\\n, etc.
DO NOT USE BACKTICKS OR MARKDOWN FORMATTING.
PROPERLY QUOTE THE KEYS AND VALUES IN THE DICTIONARY SO THE REPLY CAN BE PARSED AS A LIST OF MAPPINGS.
"""


# ===============================
# bedrock helpers
# ===============================
def create_bedrock_client(credentials: AWSCredentials):
    kwargs = {
        "service_name": "bedrock-runtime",
        "region_name": credentials.AWS_REGION,
    }
    # without explicit keys boto3 falls back to its default credential chain
    if credentials.AWS_ACCESS_KEY_ID and credentials.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = credentials.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = credentials.AWS_SECRET_ACCESS_KEY
        kwargs["aws_session_token"] = credentials.AWS_SESSION_TOKEN
    return boto3.client(**kwargs)


def get_llm(bedrock_client, model=None, temperature: float = 0.3):
    return ChatBedrock(
        client=bedrock_client,
        model_id=model or DEFAULT_MODEL_ID,
        model_kwargs={"temperature": float(temperature)},
    )


def build_message(image_bytes: bytes, mime_type: str = "image/jpeg") -> HumanMessage:
    img_base64 = base64.b64encode(image_bytes).decode("utf-8")
    return HumanMessage(content=[
        {"type": "text", "text": ANALYSIS_PROMPT},
        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{img_base64}"}},
    ])


def message_text(message) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# ===============================
# core logic
# ===============================
class AnalysisRelay:
    """Sends a drawing to the chat model and hands back its raw reply."""

    def __init__(self, llm):
        self.llm = llm

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisRelay":
        bedrock_client = create_bedrock_client(settings.credentials)
        return cls(get_llm(bedrock_client, model=settings.model_id, temperature=settings.temperature))

    def analyze(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        try:
            response = self.llm.invoke([build_message(image_bytes, mime_type)])
        except Exception as e:
            logger.exception("Error analyzing image")
            raise UpstreamError(f"Model call failed: {e}") from e
        text = message_text(response).strip()
        logger.debug("Model replied with %d characters", len(text))
        return text

    def analyze_records(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> List[AnalysisRecord]:
        return parse_analysis(self.analyze(image_bytes, mime_type))
