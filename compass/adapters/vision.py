"""Screenshot analysis via the OpenAI vision API with deterministic fallback."""

import base64
import hashlib
import json
import logging
import mimetypes
import re
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from openai import OpenAI

from compass.config import MissingAPIKeyError, Settings, get_openai_api_key
from compass.exec.context import RunContext
from compass.exec.executor import ToolExecutor
from compass.exec.types import ToolRequest
from compass.metrics.registry import MetricsClient
from compass.models.common import Platform
from compass.models.tool_results import ScreenshotAnalysis, VisionSummary

logger = logging.getLogger(__name__)

VISION_PROMPT = """Transcribe every piece of visible text in this travel screenshot,
including captions, overlays, hashtags and location tags.
Reply with JSON only:
{"text": ["one entry per line of text"], "locations": ["named places shown or mentioned"]}"""

LOCATION_PATTERNS = [
    re.compile(
        r"(?:at\s+)?([A-Z][a-zA-Z\s']+"
        r"(?:Restaurant|Cafe|Temple|Beach|Market|Hotel|Bar|Museum|Park|Station))",
        re.IGNORECASE,
    ),
    re.compile(r"📍\s*([A-Za-z\s,]+)"),
    re.compile(r"(?:Visit|Explore|Check out)\s+([A-Z][a-zA-Z\s']+)", re.IGNORECASE),
]
HASHTAG_PATTERN = re.compile(r"#[a-zA-Z0-9_]+")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

FOUND_CONFIDENCE = 0.85
NOT_FOUND_CONFIDENCE = 0.5
MOCK_CONFIDENCE = 0.9

MOCK_EXTRACTIONS: list[dict[str, list[str]]] = [
    {
        "locations": ["Senso-ji Temple", "Nakamise Shopping Street", "Asakusa"],
        "hashtags": ["#tokyo", "#japantravel", "#tokyofood"],
    },
    {
        "locations": ["Bamboo Grove", "Arashiyama", "Tenryu-ji Temple"],
        "hashtags": ["#kyoto", "#bambooforest", "#arashiyama"],
    },
    {
        "locations": ["Shibuya Crossing", "Hachiko Statue", "Center Gai"],
        "hashtags": ["#shibuya", "#tokyonightlife", "#crossing"],
    },
    {
        "locations": ["Fushimi Inari Shrine", "Thousand Torii Gates"],
        "hashtags": ["#fushimiinari", "#shrines", "#japan"],
    },
    {
        "locations": ["Tsukiji Outer Market", "Ginza District"],
        "hashtags": ["#tsukiji", "#sushi", "#japanesefood"],
    },
]


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def extract_locations(text: str) -> list[str]:
    """Pull candidate place names out of free text."""
    found = []
    for pattern in LOCATION_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip().strip(",").strip()
            if name:
                found.append(name)
    return _dedupe(found)


def extract_hashtags(text: str) -> list[str]:
    return _dedupe(HASHTAG_PATTERN.findall(text))


def detect_platform(text: str) -> Platform:
    """Guess the source app from UI text left in the screenshot."""
    if "Reels" in text or "@" in text:
        return Platform.instagram
    if "TikTok" in text or "For You" in text:
        return Platform.tiktok
    if "Subscribe" in text or "YouTube" in text:
        return Platform.youtube
    return Platform.other


def _image_digest(image_bytes: bytes) -> str:
    return hashlib.sha256(image_bytes).hexdigest()


def parse_extraction(
    image_id: str,
    source_name: str,
    lines: Sequence[str],
    extra_locations: Sequence[str] = (),
) -> ScreenshotAnalysis:
    """Build an analysis from transcribed text lines.

    Locations are matched per line; the patterns allow whitespace inside a
    name and would otherwise run across line breaks.
    """
    full_text = "\n".join(lines)
    found = [name for line in lines for name in extract_locations(line)]
    locations = _dedupe([*found, *extra_locations])
    return ScreenshotAnalysis(
        id=image_id,
        source_name=source_name,
        extracted_text=list(lines),
        location_names=locations,
        hashtags=extract_hashtags(full_text),
        platform=detect_platform(full_text),
        confidence=FOUND_CONFIDENCE if locations else NOT_FOUND_CONFIDENCE,
    )


def mock_extraction(image_bytes: bytes, source_name: str) -> ScreenshotAnalysis:
    """Deterministic stand-in analysis keyed on the image content."""
    digest = _image_digest(image_bytes)
    sample = MOCK_EXTRACTIONS[int(digest, 16) % len(MOCK_EXTRACTIONS)]
    return ScreenshotAnalysis(
        id=digest[:12],
        source_name=source_name,
        extracted_text=[*sample["locations"], " ".join(sample["hashtags"])],
        location_names=list(sample["locations"]),
        hashtags=list(sample["hashtags"]),
        platform=Platform.instagram,
        confidence=MOCK_CONFIDENCE,
        fallback=True,
    )


def merge_analyses(analyses: Sequence[ScreenshotAnalysis]) -> VisionSummary:
    """Merge per-screenshot results, keeping first-seen order."""
    platforms: list[Platform] = []
    for analysis in analyses:
        if analysis.platform is not None and analysis.platform not in platforms:
            platforms.append(analysis.platform)
    return VisionSummary(
        screenshots=list(analyses),
        all_locations=_dedupe(n for a in analyses for n in a.location_names),
        all_hashtags=_dedupe(h for a in analyses for h in a.hashtags),
        platforms=platforms,
    )


def _parse_model_reply(reply: str) -> tuple[list[str], list[str]]:
    """Split a model reply into (text lines, explicit locations)."""
    match = _JSON_OBJECT.search(reply)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            lines = [str(v) for v in parsed.get("text") or [] if str(v).strip()]
            locations = [
                str(v).strip() for v in parsed.get("locations") or [] if str(v).strip()
            ]
            return lines, locations
    return [line.strip() for line in reply.splitlines() if line.strip()], []


class VisionAdapter:
    """Extracts text, places and hashtags from screenshots."""

    def __init__(
        self,
        settings: Settings,
        client: Any | None = None,
        metrics: MetricsClient | None = None,
        max_workers: int = 4,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.max_workers = max_workers
        self._client = client
        self.executor = ToolExecutor(
            tools={"vision": self._vision},
            settings=settings,
            metrics=metrics,
        )

    @property
    def enabled(self) -> bool:
        if self._client is not None:
            return True
        try:
            get_openai_api_key(self.settings)
        except MissingAPIKeyError:
            return False
        return True

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(api_key=get_openai_api_key(self.settings))
        return self._client

    def _vision(self, args: dict[str, Any]) -> dict[str, Any] | None:
        data_url = f"data:{args['mime']};base64,{args['image_b64']}"
        response = self._get_client().chat.completions.create(
            model=self.settings.openai_vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": VISION_PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                }
            ],
            temperature=0,
        )
        text = response.choices[0].message.content
        if not text:
            return None
        return {"text": text}

    def analyze(
        self, image_bytes: bytes, filename: str, ctx: RunContext
    ) -> ScreenshotAnalysis:
        """Analyse one screenshot; never raises for collaborator failures."""
        if not self.enabled:
            return self._fallback(image_bytes, filename, "vision_disabled")

        mime = mimetypes.guess_type(filename)[0] or "image/jpeg"
        request = ToolRequest(
            name="vision",
            args={
                "image_b64": base64.b64encode(image_bytes).decode("ascii"),
                "mime": mime,
            },
        )
        response = self.executor.execute(request, ctx)
        if not response.ok or response.data is None:
            return self._fallback(image_bytes, filename, response.error)

        lines, locations = _parse_model_reply(str(response.data["text"]))
        return parse_extraction(
            _image_digest(image_bytes)[:12], filename, lines, locations
        )

    def analyze_batch(
        self, images: Sequence[tuple[str, bytes]], ctx: RunContext
    ) -> VisionSummary:
        """Analyse ``(filename, bytes)`` pairs concurrently and merge them."""
        if not images:
            return VisionSummary()
        workers = max(1, min(self.max_workers, len(images)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            analyses = list(
                pool.map(lambda item: self.analyze(item[1], item[0], ctx), images)
            )
        summary = merge_analyses(analyses)
        logger.info(
            "screenshots_analyzed",
            extra={
                "run_id": ctx.run_id,
                "screenshots": len(analyses),
                "locations": len(summary.all_locations),
                "fallbacks": sum(1 for a in analyses if a.fallback),
            },
        )
        return summary

    def _fallback(
        self, image_bytes: bytes, filename: str, reason: str | None
    ) -> ScreenshotAnalysis:
        logger.warning(
            "vision_fallback", extra={"source_name": filename, "reason": reason}
        )
        if self.metrics is not None:
            self.metrics.inc_fallback("vision")
        return mock_extraction(image_bytes, filename)

    def close(self) -> None:
        self.executor.shutdown()
