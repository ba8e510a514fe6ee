"""
Raydium AMM V4 instruction data decoder.

Instruction data arrives base58-encoded. Each record shape has a fixed
field order of little-endian integers; the first byte is the
discriminator and selects the shape:

    initialize2 (1):  u8 disc | u8 nonce | u64 open_time
                      | u64 init_pc_amount | u64 init_coin_amount   (26 bytes)
    swapBaseIn  (9):  u8 disc | u64 amount_in | u64 minimum_amount_out  (17 bytes)
    swapBaseOut (11): u8 disc | u64 max_amount_in | u64 amount_out. Not
                      decoded: swap reports are only defined for swapBaseIn.

Variable-size fields (metadata strings) are u32-length-prefixed UTF-8.
"""
import struct

import base58

from raydium.constants import IX_INITIALIZE2, IX_SWAP_BASE_IN
from raydium.errors import MalformedPayload
from raydium.models import PoolInitData, SwapData

# shape -> accepted discriminators
DISCRIMINATORS = {
    PoolInitData: (IX_INITIALIZE2,),
    SwapData: (IX_SWAP_BASE_IN,),
}


def b58decode(data: str) -> bytes:
    try:
        return base58.b58decode(data)
    except ValueError as e:
        raise MalformedPayload(f"invalid base58 payload: {e}") from e


def unpack_record(raw: bytes, shape, exact: bool = True):
    """Unpack `raw` into `shape` (PoolInitData or SwapData)."""
    size = struct.calcsize(shape.FORMAT)
    if len(raw) < size:
        raise MalformedPayload(
            f"{shape.__name__} needs {size} bytes, got {len(raw)}"
        )
    if exact and len(raw) != size:
        raise MalformedPayload(
            f"{shape.__name__} has {len(raw) - size} trailing bytes"
        )

    accepted = DISCRIMINATORS.get(shape, ())
    if raw[0] not in accepted:
        raise MalformedPayload(
            f"unknown discriminator {raw[0]} for {shape.__name__}"
        )

    return shape(*struct.unpack_from(shape.FORMAT, raw, 0))


def decode_ix_data(data: str, shape, exact: bool = True):
    """Decode a base58 instruction payload into the given record shape."""
    return unpack_record(b58decode(data), shape, exact=exact)


def decode_pool_init(data: str) -> PoolInitData:
    return decode_ix_data(data, PoolInitData)


def decode_swap_data(data: str | None) -> SwapData | None:
    """Swap payload, or None when the instruction carried no data."""
    if data is None:
        return None
    return decode_ix_data(data, SwapData)


def encode_ix_data(record) -> str:
    return base58.b58encode(record.encode()).decode("ascii")


# ── Variable-size fields ────────────────────────────────────────


def read_u16(raw: bytes, offset: int) -> tuple[int, int]:
    if offset + 2 > len(raw):
        raise MalformedPayload(f"u16 at {offset} past end ({len(raw)} bytes)")
    return struct.unpack_from("<H", raw, offset)[0], offset + 2


def read_pubkey(raw: bytes, offset: int) -> tuple[str, int]:
    if offset + 32 > len(raw):
        raise MalformedPayload(f"pubkey at {offset} past end ({len(raw)} bytes)")
    key = base58.b58encode(raw[offset:offset + 32]).decode("ascii")
    return key, offset + 32


def read_string(raw: bytes, offset: int) -> tuple[str, int]:
    """u32 length prefix + UTF-8 bytes. Returns (text, next_offset)."""
    if offset + 4 > len(raw):
        raise MalformedPayload(f"string length at {offset} past end")
    length = struct.unpack_from("<I", raw, offset)[0]
    start = offset + 4
    end = start + length
    if end > len(raw):
        raise MalformedPayload(
            f"string of {length} bytes at {offset} overruns {len(raw)}-byte buffer"
        )
    try:
        text = raw[start:end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayload(f"string at {offset} is not UTF-8: {e}") from e
    return text, end


def trim_padding(text: str) -> str:
    """Strip the null bytes on-chain fixed-width strings are padded with."""
    return text.strip("\x00")
