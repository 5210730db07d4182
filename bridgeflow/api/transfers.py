from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..core.catalog import ChainTokenCatalog
from ..core.errors import ErrorKind, classify
from ..core.execution import ExecutionPathSelector
from ..core.quote import QuoteEngine, TransferIntent
from ..providers.gateway import GatewayProvider

router = APIRouter(prefix="/transfers")

_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.QUOTE_EXPIRED: 409,
    ErrorKind.NETWORK_LIMITATION: 400,
    ErrorKind.ROUTE_UNAVAILABLE: 400,
    ErrorKind.UNSUPPORTED_TOKEN: 400,
    ErrorKind.UNSUPPORTED_CHAIN: 400,
    ErrorKind.AMOUNT_TOO_SMALL: 400,
    ErrorKind.PROVIDER_UNAVAILABLE: 503,
}


class QuoteRequest(BaseModel):
    sourceToken: str = Field(..., description="Token debited on the source chain")
    destinationToken: str = Field(..., description="Token credited on the destination chain")
    sourceChain: str = Field(..., description="Source chain id (e.g. ARBITRUM)")
    destinationChain: str = Field(..., description="Destination chain id (e.g. GNOSIS)")
    amount: str = Field(..., description="Decimal amount in source-token units")
    depositor: str = Field(..., description="Source-side address")
    recipient: str = Field(..., description="Destination-side address")

    def to_intent(self) -> TransferIntent:
        return TransferIntent(
            source_token=self.sourceToken,
            destination_token=self.destinationToken,
            source_chain=self.sourceChain.upper(),
            destination_chain=self.destinationChain.upper(),
            amount=self.amount,
            depositor=self.depositor,
            recipient=self.recipient,
        )


def get_gateway_provider() -> GatewayProvider:
    return GatewayProvider()


def get_selector(provider: GatewayProvider = Depends(get_gateway_provider)) -> ExecutionPathSelector:
    return ExecutionPathSelector(provider)


async def get_catalog(provider: GatewayProvider = Depends(get_gateway_provider)) -> ChainTokenCatalog:
    catalog = ChainTokenCatalog(provider)
    try:
        await catalog.load()
    except Exception as exc:
        raise _http_error(exc) from exc
    return catalog


def _http_error(exc: Exception, intent: Optional[TransferIntent] = None) -> HTTPException:
    classified = classify(exc, intent=intent)
    return HTTPException(
        status_code=_STATUS_BY_KIND.get(classified.kind, 502),
        detail=classified.to_dict(),
    )


@router.get("/tokens")
async def list_tokens(
    chain: Optional[str] = Query(default=None, description="Only mark tokens offered on this chain as compatible"),
    catalog: ChainTokenCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    entries = catalog.filter_tokens_for_chain(chain)
    return {"chain": chain, "tokens": [entry.to_dict() for entry in entries]}


@router.get("/chains")
async def list_chains(
    token: Optional[str] = Query(default=None, description="Only mark chains offering this token as compatible"),
    catalog: ChainTokenCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    entries = catalog.filter_chains_for_token(token)
    return {"token": token, "chains": [entry.to_dict() for entry in entries]}


@router.post("/quote")
async def create_quote(
    request: QuoteRequest,
    provider: GatewayProvider = Depends(get_gateway_provider),
    catalog: ChainTokenCatalog = Depends(get_catalog),
    selector: ExecutionPathSelector = Depends(get_selector),
) -> Dict[str, Any]:
    intent = request.to_intent()
    engine = QuoteEngine(provider, catalog)
    try:
        quote = await engine.request_quote(intent)
    except Exception as exc:
        raise _http_error(exc, intent) from exc
    return {
        "success": True,
        "quote": quote.to_dict(),
        "sponsored": selector.is_sponsored(intent.destination_chain),
    }


@router.get("/sponsorship/{chain}")
async def sponsorship(
    chain: str,
    selector: ExecutionPathSelector = Depends(get_selector),
) -> Dict[str, Any]:
    return {"chain": chain.upper(), "sponsored": selector.is_sponsored(chain)}
