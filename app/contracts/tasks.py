"""
Celery tasks for contracts.

- generate_contract: Build and render the agreement for a newly paid
  collaboration order. Queued with transaction.on_commit by the escrow
  manager once the order row is committed.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 5},
    acks_late=True,
)
def generate_contract(self, order_id: str) -> dict:
    from contracts.services import ContractService

    contract = ContractService.generate(order_id)
    logger.info(
        "Contract ready",
        extra={"order_id": order_id, "contract_id": str(contract.id)},
    )
    return {"order_id": order_id, "contract_id": str(contract.id)}
