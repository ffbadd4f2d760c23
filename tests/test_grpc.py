import grpc
import pytest
from google.protobuf import struct_pb2

from warehouse_flow.server.grpc.server import create_grpc_server
from warehouse_flow.services import TransitionCoordinator


def _struct(payload: dict) -> struct_pb2.Struct:
    struct = struct_pb2.Struct()
    struct.update(payload)
    return struct


@pytest.mark.asyncio
async def test_grpc_induct_and_stow(store):
    server = create_grpc_server(TransitionCoordinator(store), port=50071)
    await server.start()
    try:
        async with grpc.aio.insecure_channel("localhost:50071") as channel:
            induct = channel.unary_unary(
                "/warehouseflow.Transitions/Induct",
                request_serializer=struct_pb2.Struct.SerializeToString,
                response_deserializer=struct_pb2.Struct.FromString,
            )
            result = await induct(_struct({"package_id": "PKG-001", "warehouse_id": "WH-001"}))
            assert result["success"] is True
            assert result["package"]["status"] == "INDUCTED"

            batch = channel.unary_unary(
                "/warehouseflow.Transitions/InductBatch",
                request_serializer=struct_pb2.Struct.SerializeToString,
                response_deserializer=struct_pb2.Struct.FromString,
            )
            outcome = await batch(
                _struct(
                    {
                        "items": [
                            {"packageId": "PKG-002", "warehouseId": "WH-001"},
                            "not-an-item",
                            {"packageId": "PKG-404", "warehouseId": "WH-001"},
                        ]
                    }
                )
            )
            assert outcome["success_count"] == 1
            assert outcome["failure_count"] == 2
            assert outcome["results"][1]["errors"][0]["code"] == "VALIDATION_FAILED"

            stow = channel.unary_unary(
                "/warehouseflow.Transitions/Stow",
                request_serializer=struct_pb2.Struct.SerializeToString,
                response_deserializer=struct_pb2.Struct.FromString,
            )
            stowed = await stow(_struct({"palletId": "PLT-001", "packageIds": ["PKG-001"]}))
            assert stowed["success"] is True
            assert stowed["pallet"]["packages"][0]["pallet_id"] == "PLT-001"
    finally:
        await server.stop(0)
