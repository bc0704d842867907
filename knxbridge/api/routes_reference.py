"""Reference data routes — supported DPT catalog and payload decoding.

Lets an installer check which DPTs the bridge understands and what a
captured telegram payload decodes to.
"""

from fastapi import APIRouter, HTTPException

from knxbridge.dpt.codec import DPTCodec

from .models import DecodeRequest, DecodeResponse, DPTInfoResponse

router = APIRouter(prefix="/api/v1/reference", tags=["reference"])


@router.get("/dpts", response_model=list[DPTInfoResponse])
def list_dpts():
    """List the registered DPTs with unit and range."""
    return DPTCodec.list_dpts()


@router.post("/dpts/{dpt_id}/decode", response_model=DecodeResponse)
def decode_payload(dpt_id: str, body: DecodeRequest):
    """Decode a hex payload with the given DPT (e.g. "9.001" or "DPT9.1")."""
    info = DPTCodec.get_info(dpt_id)
    if info is None:
        raise HTTPException(status_code=404, detail=f"Unknown DPT: {dpt_id}")
    try:
        payload = bytes.fromhex(body.payload_hex)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail="payload_hex is not valid hex") from exc
    return {
        "dpt": info.id,
        "value": DPTCodec.decode(dpt_id, payload),
        "unit": info.unit,
    }
