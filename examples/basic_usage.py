#!/usr/bin/env python3
"""Basic usage example for minibin.

This example demonstrates:
1. Defining a message with Pydantic
2. Encoding to compact binary format
3. Decoding back to a Pydantic model
4. Calculating message sizes
5. Driving the Encoder by hand
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import Field

from minibin import U8, U16, BaseMessage, DecodeError, Encoder, decode, encode, field_sizes


class MissionPhase(enum.Enum):
    STARTUP = 1
    TRANSIT = 2
    SURVEY = 3


# Define a message class
class StatusReport(BaseMessage):
    """Vehicle status report.

    Integer widths are declared with the U8/U16 aliases; small values still
    encode in a single byte.
    """

    vehicle_id: U8 = Field(description="Vehicle ID (0-255)")
    phase: MissionPhase = Field(description="Current mission phase")
    depth_cm: U16 = Field(le=10000, description="Depth in centimeters (0-100m)")
    battery_pct: U8 = Field(le=100, description="Battery percentage (0-100)")
    note: Optional[str] = Field(default=None, description="Free-form remark")


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("minibin Basic Usage Example")
    print("=" * 60)
    print()

    # Create a message instance
    print("1. Creating a status report message...")
    msg = StatusReport(vehicle_id=42, phase=MissionPhase.SURVEY, depth_cm=2500, battery_pct=87)

    print(f"   Vehicle ID: {msg.vehicle_id}")
    print(f"   Phase: {msg.phase.name}")
    print(f"   Depth: {msg.depth_cm} cm ({msg.depth_cm / 100:.1f} m)")
    print(f"   Battery: {msg.battery_pct}%")
    print()

    # Analyze field sizes
    print("2. Analyzing field sizes...")
    sizes = field_sizes(msg)
    for field_name, num_bytes in sizes.items():
        print(f"   {field_name}: {num_bytes} bytes")
    print(f"   Total: {sum(sizes.values())} bytes")
    print()

    # Encode the message
    print("3. Encoding to compact binary format...")
    encoded_data = encode(msg)

    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   Hex: {encoded_data.hex(' ')}")
    print()

    # Decode the message
    print("4. Decoding from binary...")
    decoded_msg = decode(StatusReport, encoded_data)

    print(f"   Vehicle ID: {decoded_msg.vehicle_id}")
    print(f"   Depth: {decoded_msg.depth_cm} cm")
    print(f"   Note: {decoded_msg.note}")
    if decoded_msg == msg:
        print("   ✓ Round-trip successful! Messages match.")
    else:
        print("   ✗ Round-trip failed! Messages don't match.")
    print()

    # Truncated input is reported with its byte offset
    print("5. Decoding a truncated payload...")
    try:
        decode(StatusReport, encoded_data[:3])
    except DecodeError as e:
        print(f"   {type(e).__name__}: {e}")
    print()

    # The same bytes, produced by hand
    print("6. Producing the same bytes with the Encoder engine...")
    encoder = Encoder()
    encoder.begin_struct(5)
    encoder.emit_u8(42)
    encoder.emit_enum_variant(2, payload_len=0)
    encoder.emit_u16(2500)
    encoder.emit_u8(87)
    encoder.emit_option_none()
    encoder.end_struct()
    print(f"   Matches: {encoder.getvalue() == encoded_data}")
    print()

    # Compare to naive encoding
    print("7. Comparing to naive JSON encoding...")
    json_bytes = msg.model_dump_json().encode("utf-8")

    print(f"   minibin size: {len(encoded_data)} bytes")
    print(f"   JSON size: {len(json_bytes)} bytes")
    print(f"   Compression ratio: {len(json_bytes) / len(encoded_data):.1f}x")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
