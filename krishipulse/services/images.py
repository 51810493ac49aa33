# krishipulse/services/images.py
import asyncio
import base64
import binascii
import logging
import time
from typing import List, Optional

from ..adapters.base import ImageAnalyzer
from ..config import settings
from ..errors import ImageDecodeError, StageError
from ..http import get_http_client
from ..models.domain import ANALYSIS_KINDS, ImageAnalysis, ImageMetadata, ImageResult, ImageSummary
from ..schemas import FarmerInput, ImageInput
from ..utils.clock import Clock, SystemClock
from ..utils.tasks import gather_or_cancel
from .fallback import FallbackGenerator

log = logging.getLogger("krishipulse.images")

def t(): return time.perf_counter()


async def load_image_bytes(image: ImageInput) -> bytes:
    if image.file is not None:
        return bytes(image.file)
    if image.data:
        payload = image.data
        # tolerate data URLs: "data:image/jpeg;base64,...."
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"invalid base64 image: {e}") from e
    if image.url:
        client = get_http_client()
        r = await client.get(image.url)
        if r.status_code >= 400:
            raise ImageDecodeError(f"failed to fetch image: {r.status_code}")
        return r.content
    raise ImageDecodeError("Invalid image format")


def summarize(results: List[ImageResult]) -> ImageSummary:
    kinds: List[str] = []
    issues: List[str] = []
    health = "Unknown"
    for r in results:
        for k in r.metadata.analysis_types:
            if k not in kinds:
                kinds.append(k)
        if r.error:
            issues.append(f"{r.image_id}: {r.error}")
        if r.crop_health and isinstance(r.crop_health.results, dict):
            health = r.crop_health.results.get("overallHealth", health)
    return ImageSummary(total_images=len(results), analysis_types=kinds, issues=issues, overall_health=health)


class ImageStage:
    """Step 4: four analysis kinds per uploaded image, run concurrently."""

    def __init__(self,
                 analyzer: Optional[ImageAnalyzer],
                 fallback: FallbackGenerator,
                 clock: Optional[Clock] = None,
                 timeout: Optional[float] = None):
        self.analyzer = analyzer
        self.fallback = fallback
        self.clock = clock or SystemClock()
        self.timeout = timeout if timeout is not None else settings.IMAGE_TIMEOUT_SEC

    async def _analyze_one(self, image: ImageInput, image_id: str) -> ImageResult:
        try:
            if self.analyzer is None:
                raise StageError("images", "no image analyzer configured")
            buffer = await load_image_bytes(image)
            comprehensive, crop_health, soil, disease = await gather_or_cancel(
                *(self.analyzer.analyze_image(buffer, kind) for kind in ANALYSIS_KINDS)
            )
        except Exception as e:
            log.warning("image %s analysis failed: %s", image_id, e)
            return self.fallback.single_image(image_id, error=str(e))

        return ImageResult(
            image_id=image_id,
            timestamp=self.clock.now(),
            comprehensive=comprehensive,
            crop_health=crop_health,
            soil=soil,
            disease=disease,
            metadata=ImageMetadata(size=len(buffer), analysis_types=list(ANALYSIS_KINDS)),
        )

    async def _analyze_all(self, farmer_input: FarmerInput) -> List[ImageResult]:
        if farmer_input.images:
            return list(await asyncio.gather(*(
                self._analyze_one(img, f"image_{i + 1}") for i, img in enumerate(farmer_input.images)
            )))
        single = ImageInput(data=farmer_input.image_base64, type="base64")
        return [await self._analyze_one(single, "main_image")]

    async def run(self, farmer_input: FarmerInput) -> ImageAnalysis:
        if not farmer_input.has_images():
            log.info("no images provided farmer=%s", farmer_input.farmer_id)
            return ImageAnalysis(success=True, data=None, message="No images provided for analysis")

        t0 = t()
        try:
            results = await asyncio.wait_for(self._analyze_all(farmer_input), timeout=self.timeout)
        except Exception as e:
            reason = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            log.error("image processing failed farmer=%s: %s", farmer_input.farmer_id, reason)
            return self.fallback.image_analysis(error=reason)

        summary = summarize(results)
        log.info("processed %d image(s) in %dms", len(results), round((t() - t0) * 1000))
        return ImageAnalysis(success=True, data=results, summary=summary, timestamp=self.clock.now())
