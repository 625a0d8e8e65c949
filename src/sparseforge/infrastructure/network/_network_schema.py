"""
Network schema: a named graph of layers.

Layers reference their inputs by name through `input_layer_instance_names`.
A name that no layer in the schema defines is an external input (data fed
by the caller). The schema derives from this graph:

- a forward propagation order (topological sort, cycles rejected),
- per-layer output shapes from external input shapes,
- input shapes from output shapes where the layers support it,
- total compute cost per action,
- a human-readable parameter summary,
- a JSON document that round-trips through a `LayerFactory`.

JSON format
-----------
{
  "format": "sparseforge.json.schema.v1",
  "name": "...",
  "layers": [ <record dict>, ... ]
}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from ...domain._errors import ShapeMismatchError
from ...domain._layer_action import LayerAction, LayerActionType
from ...domain._shape import ShapeDescriptor
from ..layers._layer import Layer
from ..layers._layer_factory import LayerFactory, default_layer_factory
from ..serialization._json import record_from_dict, records_to_list
from ..serialization._schema import LayerRecord

logger = logging.getLogger(__name__)

SCHEMA_FORMAT = "sparseforge.json.schema.v1"


class NetworkSchema:
    """
    Ordered collection of uniquely named layers.

    Parameters
    ----------
    name : str, optional
        Schema name, carried into the JSON document.
    layers : Iterable[Layer], optional
        Layers to add, in order.
    """

    def __init__(self, name: str = "", layers: Iterable[Layer] = ()) -> None:
        self.name = name
        self._layers: Dict[str, Layer] = {}
        for layer in layers:
            self.add_layer(layer)

    # ------------------------------------------------------------------
    # Container
    # ------------------------------------------------------------------
    def add_layer(self, layer: Layer) -> None:
        if not layer.instance_name:
            raise ValueError(f"Cannot add unnamed {layer.get_type_name()} layer to schema")
        if layer.instance_name in self._layers:
            raise ValueError(f"Duplicate layer name in schema: {layer.instance_name!r}")
        self._layers[layer.instance_name] = layer

    def get_layer(self, instance_name: str) -> Layer:
        try:
            return self._layers[instance_name]
        except KeyError as e:
            raise ValueError(f"No layer named {instance_name!r} in schema") from e

    @property
    def layers(self) -> List[Layer]:
        return list(self._layers.values())

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers.values())

    def __contains__(self, instance_name: object) -> bool:
        return instance_name in self._layers

    def get_input_layer_names(self) -> List[str]:
        """
        Return the external input names, in first-reference order.
        """
        res: List[str] = []
        for layer in self._layers.values():
            for name in layer.input_layer_instance_names:
                if name not in self._layers and name not in res:
                    res.append(name)
        return res

    def get_layers_in_forward_propagation_order(self) -> List[Layer]:
        """
        Return layers so that every layer follows all layers it reads from.

        Ties keep insertion order.

        Raises
        ------
        ValueError
            If the layer graph contains a cycle.
        """
        pending = {
            name: {i for i in layer.input_layer_instance_names if i in self._layers}
            for name, layer in self._layers.items()
        }
        res: List[Layer] = []
        while pending:
            ready = [name for name, deps in pending.items() if not deps]
            if not ready:
                raise ValueError(f"Layer graph contains a cycle among: {sorted(pending)}")
            for name in ready:
                res.append(self._layers[name])
                del pending[name]
            for deps in pending.values():
                deps.difference_update(ready)
        return res

    # ------------------------------------------------------------------
    # Shape inference
    # ------------------------------------------------------------------
    def get_layer_configuration_specific_map(
        self, input_configuration_specific_map: Mapping[str, ShapeDescriptor]
    ) -> Dict[str, ShapeDescriptor]:
        """
        Propagate external input shapes forward through the schema.

        Parameters
        ----------
        input_configuration_specific_map : Mapping[str, ShapeDescriptor]
            Shape of every external input.

        Returns
        -------
        dict[str, ShapeDescriptor]
            Shapes of the external inputs and of every layer output.

        Raises
        ------
        ValueError
            If an external input shape is missing.
        ShapeMismatchError
            If any layer rejects its input shapes.
        """
        res: Dict[str, ShapeDescriptor] = dict(input_configuration_specific_map)
        for name in self.get_input_layer_names():
            if name not in res:
                raise ValueError(f"No shape given for external input {name!r}")
        for layer in self.get_layers_in_forward_propagation_order():
            inputs = [res[n] for n in layer.input_layer_instance_names]
            res[layer.instance_name] = layer.get_output_layer_configuration_specific(inputs)
        return res

    def get_layer_configuration_specific_map_reverse(
        self, output_configuration_specific_map: Mapping[str, ShapeDescriptor]
    ) -> Dict[str, ShapeDescriptor]:
        """
        Infer shapes backward from known output shapes.

        Layers are visited in reverse propagation order; a layer whose output
        shape is known contributes the shapes of its inputs when it supports
        backward inference. Shapes the schema cannot infer are absent from the
        result.

        Raises
        ------
        ShapeMismatchError
            If two consumers infer different shapes for the same producer.
        """
        res: Dict[str, ShapeDescriptor] = dict(output_configuration_specific_map)
        for layer in reversed(self.get_layers_in_forward_propagation_order()):
            output_shape = res.get(layer.instance_name)
            if output_shape is None:
                continue
            for input_id, input_name in enumerate(layer.input_layer_instance_names):
                inferred = layer.get_input_layer_configuration_specific(output_shape, input_id)
                if inferred is None:
                    continue
                known = res.get(input_name)
                if known is not None and known != inferred:
                    raise ShapeMismatchError(
                        f"Conflicting shapes inferred for {input_name!r}",
                        expected=known,
                        actual=inferred,
                        layer_name=layer.instance_name,
                        layer_type=layer.get_type_name(),
                    )
                res[input_name] = inferred
        return res

    def get_flops_per_entry(
        self,
        input_configuration_specific_map: Mapping[str, ShapeDescriptor],
        action_type: LayerActionType = LayerActionType.FORWARD,
    ) -> float:
        """
        Return the total cost of one entry for `action_type`.

        Backward-data cost is summed over every layer input that is produced
        by another layer (external inputs need no gradient). Backward-weights
        cost is summed over layers that own parameters.
        """
        shapes = self.get_layer_configuration_specific_map(input_configuration_specific_map)
        total = 0.0
        for layer in self.get_layers_in_forward_propagation_order():
            inputs = [shapes[n] for n in layer.input_layer_instance_names]
            if action_type is LayerActionType.FORWARD:
                total += layer.get_flops_per_entry(inputs, LayerAction.forward())
            elif action_type is LayerActionType.BACKWARD_DATA:
                for input_id, input_name in enumerate(layer.input_layer_instance_names):
                    if input_name in self._layers:
                        total += layer.get_flops_per_entry(inputs, LayerAction.backward_data(input_id))
            elif not layer.is_empty_data():
                total += layer.get_flops_per_entry(inputs, LayerAction.backward_weights())
        return total

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    def get_parameter_strings(self) -> List[str]:
        res = []
        for layer in self._layers.values():
            params = "; ".join(s for s in layer.get_parameter_strings() if s)
            line = f"{layer.instance_name} = {layer.get_type_name()}({', '.join(layer.input_layer_instance_names)})"
            if params:
                line += f": {params}"
            res.append(line)
        return res

    def describe(self) -> str:
        header = f"Schema {self.name!r}" if self.name else "Schema"
        return "\n".join([f"{header}, {len(self)} layers"] + self.get_parameter_strings())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_records(self) -> List[LayerRecord]:
        return [layer.to_record() for layer in self._layers.values()]

    @classmethod
    def from_records(
        cls,
        records: Iterable[LayerRecord],
        factory: Optional[LayerFactory] = None,
        *,
        name: str = "",
    ) -> "NetworkSchema":
        """
        Build a schema from layer records, resolving types through `factory`
        (a default factory when omitted).
        """
        factory = factory if factory is not None else default_layer_factory()
        return cls(name, (factory.create_layer_from_record(r) for r in records))

    def get_config(self) -> Dict[str, object]:
        return {"name": self.name, "layers": records_to_list(self.to_records())}

    def save_json(self, path: str | Path) -> None:
        """
        Save the schema into a single JSON file.
        """
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)

        payload = {"format": SCHEMA_FORMAT, **self.get_config()}
        p.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        logger.debug("Saved schema %r with %d layers to %s", self.name, len(self), p)

    @classmethod
    def load_json(cls, path: str | Path, factory: Optional[LayerFactory] = None) -> "NetworkSchema":
        """
        Load a schema saved by `save_json()`.

        Raises
        ------
        ValueError
            If the file format is unsupported or a layer type is unknown.
        MissingFieldError
            If a layer record lacks a required field.
        """
        p = Path(path)
        payload = json.loads(p.read_text(encoding="utf-8"))

        fmt = payload.get("format")
        if fmt != SCHEMA_FORMAT:
            raise ValueError(f"Unsupported schema format: {fmt!r}")

        records = [record_from_dict(d) for d in payload.get("layers", [])]
        return cls.from_records(records, factory, name=str(payload.get("name", "")))
