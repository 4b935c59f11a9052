"""Vision recognition commands."""

import logging
from typing import TYPE_CHECKING

from visionpos.ai.recognition import CONFIDENCE_THRESHOLD, filter_candidates
from visionpos.api.dispatcher import CommandContext, CommandDispatcher
from visionpos.models.role import PermissionAction as P
from visionpos.schemas.envelope import Envelope
from visionpos.schemas.vision import ProcessImageRequest, ThresholdRequest
from visionpos.services.store_settings import THRESHOLD_KEY

if TYPE_CHECKING:
    from visionpos.context import AppContext

logger = logging.getLogger(__name__)


def register(dispatcher: CommandDispatcher, app: "AppContext") -> None:
    catalog = app.catalog

    async def process_image(ctx: CommandContext) -> Envelope:
        data = ctx.parse(ProcessImageRequest)
        products = await catalog.list_products()
        stored = await app.store_settings.get(THRESHOLD_KEY, CONFIDENCE_THRESHOLD)
        try:
            threshold = float(stored)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid {THRESHOLD_KEY}: {stored!r}")
            threshold = CONFIDENCE_THRESHOLD

        candidates = filter_candidates(
            await app.recognizer.recognize(data.image_data, products), threshold
        )
        by_id = {p.id: p for p in products}
        results = [
            {
                **c.model_dump(mode="json"),
                "product": (await catalog.to_response(by_id[c.product_id])).model_dump(mode="json"),
            }
            for c in candidates
            if c.product_id in by_id
        ]
        return Envelope.ok(results)

    async def set_threshold(ctx: CommandContext) -> Envelope:
        data = ctx.parse(ThresholdRequest)
        await app.store_settings.set(THRESHOLD_KEY, data.threshold)
        return Envelope.ok({"threshold": data.threshold}, message="Threshold updated successfully")

    dispatcher.register("POST", "/vision/process", process_image, [P.PRODUCTS_READ])
    dispatcher.register("PUT", "/vision/threshold", set_threshold, [P.SETTINGS_UPDATE])
