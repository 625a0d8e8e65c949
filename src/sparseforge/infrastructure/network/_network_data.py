"""
Network data: the parameter buffers of every layer of a schema.

Only layers that declare parameter or custom groups get an entry. Buffers
are created zero-filled from each layer's declared sizes, initialized by the
layers' own `randomize_data`, and checkpointed as a JSON document.

JSON format
-----------
{
  "format": "sparseforge.json.data.v1",
  "layers": {
    "conv1": {
      "data": [{"b64": "...", "dtype": "<f4", "shape": [...]}, ...],
      "data_custom": [{"b64": "...", "dtype": "<i4", "shape": [...]}, ...]
    },
    ...
  }
}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import numpy as np

from ..encoding._b64 import buffer_to_payload, payload_to_buffer
from ..layers._layer_data import LayerData, LayerDataCustom
from ._network_schema import NetworkSchema

logger = logging.getLogger(__name__)

DATA_FORMAT = "sparseforge.json.data.v1"


class NetworkData:
    """
    Per-layer `LayerData` and `LayerDataCustom`, keyed by layer name.
    """

    def __init__(self) -> None:
        self.data: Dict[str, LayerData] = {}
        self.data_custom: Dict[str, LayerDataCustom] = {}

    @classmethod
    def from_schema(cls, schema: NetworkSchema) -> "NetworkData":
        """
        Allocate zero-filled buffers for every layer of `schema` that owns any.
        """
        res = cls()
        for layer in schema:
            if layer.get_data_config() or layer.get_data_custom_config():
                res.data[layer.instance_name] = layer.create_layer_data()
                res.data_custom[layer.instance_name] = layer.create_layer_data_custom()
        return res

    def check_consistency(self, schema: NetworkSchema) -> None:
        """
        Raise ValueError if buffers are missing, extra, or sized differently
        from what the schema's layers declare.
        """
        expected = {
            layer.instance_name
            for layer in schema
            if layer.get_data_config() or layer.get_data_custom_config()
        }
        actual = set(self.data)
        if expected != actual:
            raise ValueError(
                f"Network data layers {sorted(actual)} do not match schema layers {sorted(expected)}"
            )
        for name in expected:
            layer = schema.get_layer(name)
            self.data[name].check_consistency(layer.get_data_config())
            self.data_custom[name].check_consistency(layer.get_data_custom_config())

    def randomize(self, schema: NetworkSchema, generator: np.random.Generator) -> None:
        """
        Initialize every layer's buffers in place from `generator`.
        """
        self.check_consistency(schema)
        for layer in schema.get_layers_in_forward_propagation_order():
            if layer.instance_name not in self.data:
                continue
            layer.randomize_data(
                self.data[layer.instance_name], self.data_custom[layer.instance_name], generator
            )
        logger.debug("Randomized data of %d layers", len(self.data))

    def get_string_for_average_data(self, schema: NetworkSchema) -> str:
        lines = []
        for name, data in self.data.items():
            lines.append(f"{name}: {schema.get_layer(name).get_string_for_average_data(data)}")
        return "\n".join(lines)

    def get_config(self) -> Dict[str, Any]:
        return {
            name: {
                "data": [buffer_to_payload(b) for b in self.data[name]],
                "data_custom": [buffer_to_payload(b) for b in self.data_custom[name]],
            }
            for name in self.data
        }

    def save_json(self, path: str | Path) -> None:
        """
        Save all buffers into a single JSON file.

        Notes
        -----
        - Base64 adds ~33% size overhead.
        """
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)

        payload = {"format": DATA_FORMAT, "layers": self.get_config()}
        p.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    @classmethod
    def load_json(cls, path: str | Path) -> "NetworkData":
        """
        Load buffers saved by `save_json()`.

        Raises
        ------
        ValueError
            If the file format is unsupported or a payload is corrupt.
        """
        p = Path(path)
        payload = json.loads(p.read_text(encoding="utf-8"))

        fmt = payload.get("format")
        if fmt != DATA_FORMAT:
            raise ValueError(f"Unsupported data format: {fmt!r}")

        res = cls()
        for name, entry in payload.get("layers", {}).items():
            res.data[name] = LayerData(
                [payload_to_buffer(b, expected_dtype=LayerData.dtype) for b in entry.get("data", [])]
            )
            res.data_custom[name] = LayerDataCustom(
                [payload_to_buffer(b, expected_dtype=LayerDataCustom.dtype) for b in entry.get("data_custom", [])]
            )
        return res
