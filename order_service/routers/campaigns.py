from fastapi import APIRouter, Depends
import structlog

from order_service.dependencies import get_campaign_worker
from order_service.models import DispatchResultResponse, ManualCampaignRequest
from order_service.workers.discount_campaign import DiscountCampaignWorker

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/campaigns", tags=["campaigns"])


@router.post("/discount", response_model=DispatchResultResponse)
async def send_manual_discount_email(
    request: ManualCampaignRequest,
    worker: DiscountCampaignWorker = Depends(get_campaign_worker),
):
    """
    Send today's discount email to the given subscribers.

    Inactive or unknown ids are skipped.
    """
    logger.info("Manual discount campaign requested", requested=len(request.subscriber_ids))
    result = await worker.trigger_manual_campaign(request.subscriber_ids)
    return DispatchResultResponse.from_result(result)


@router.post("/discount/run", response_model=DispatchResultResponse)
async def run_daily_discount_campaign(
    worker: DiscountCampaignWorker = Depends(get_campaign_worker),
):
    """
    Run the daily discount campaign immediately.

    Same behaviour as the scheduled run, including skipping when no
    products are discounted.
    """
    logger.info("Manually triggering daily discount campaign")
    result = await worker.run_scheduled_campaign()
    return DispatchResultResponse.from_result(result)
