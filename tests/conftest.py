import struct
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from javatools import (  # type: ignore
    ACC_PRIVATE,
    ACC_PUBLIC,
    ACC_SUPER,
    CONST_Class,
    CONST_Integer,
    CONST_Long,
    CONST_Utf8,
    JavaClassInfo,
)

from umlink.classinfo import read_class

MAGIC = 0xCAFEBABE


class ClassFileBuilder:
    """
    Writes minimal but valid .class bytes so tests do not need a JDK.

        b = ClassFileBuilder("com/example/Computer")
        b.add_field("cpu", "Lcom/example/Cpu;", annotations=[b.annotation("com.example.Compose")])
        data = b.build()
    """

    def __init__(
        self,
        name: str,
        super_name: Optional[str] = "java/lang/Object",
        access: int = ACC_PUBLIC | ACC_SUPER,
    ) -> None:
        self._pool: List[bytes] = []
        self._index: Dict[Tuple[str, object], int] = {}
        self._next = 1
        self.access = int(access)
        self.this_class = self.class_ref(name)
        self.super_class = self.class_ref(super_name) if super_name else 0
        self.interfaces: List[int] = []
        self.fields: List[bytes] = []
        self.methods: List[bytes] = []
        self.attributes: List[bytes] = []

    # ---------------- Constant pool ----------------

    def _add(self, key: Tuple[str, object], data: bytes, slots: int = 1) -> int:
        if key in self._index:
            return self._index[key]
        idx = self._next
        self._pool.append(data)
        self._index[key] = idx
        self._next += slots
        return idx

    def utf8(self, text: str) -> int:
        raw = text.encode("utf-8")
        return self._add(("utf8", text), struct.pack(">BH", CONST_Utf8, len(raw)) + raw)

    def class_ref(self, name: str) -> int:
        name_index = self.utf8(name)
        return self._add(("class", name), struct.pack(">BH", CONST_Class, name_index))

    def integer(self, value: int) -> int:
        return self._add(("int", value), struct.pack(">Bi", CONST_Integer, value))

    def long(self, value: int) -> int:
        return self._add(("long", value), struct.pack(">Bq", CONST_Long, value), slots=2)

    # ---------------- Attributes ----------------

    def annotation(self, type_name: str, **params: object) -> bytes:
        """type_name is dotted ("com.example.Skip"); params become element/value pairs."""
        descriptor = "L" + type_name.replace(".", "/") + ";"
        out = struct.pack(">HH", self.utf8(descriptor), len(params))
        for key, value in params.items():
            out += struct.pack(">H", self.utf8(key))
            if isinstance(value, bool):
                out += b"Z" + struct.pack(">H", self.integer(int(value)))
            elif isinstance(value, int):
                out += b"I" + struct.pack(">H", self.integer(value))
            elif isinstance(value, tuple):
                # enum constant: (type descriptor, constant name)
                out += b"e" + struct.pack(">HH", self.utf8(value[0]), self.utf8(value[1]))
            else:
                out += b"s" + struct.pack(">H", self.utf8(str(value)))
        return out

    def _attribute(self, name: str, body: bytes) -> bytes:
        return struct.pack(">HI", self.utf8(name), len(body)) + body

    def annotations_attribute(self, annotations: Sequence[bytes], visible: bool = True) -> bytes:
        name = "RuntimeVisibleAnnotations" if visible else "RuntimeInvisibleAnnotations"
        return self._attribute(name, struct.pack(">H", len(annotations)) + b"".join(annotations))

    def method_parameters_attribute(self, names: Sequence[Optional[str]]) -> bytes:
        body = struct.pack(">B", len(names))
        for n in names:
            body += struct.pack(">HH", self.utf8(n) if n else 0, 0)
        return self._attribute("MethodParameters", body)

    def _member(self, access: int, name: str, descriptor: str, attributes: Sequence[bytes]) -> bytes:
        head = struct.pack(">HHHH", int(access), self.utf8(name), self.utf8(descriptor), len(attributes))
        return head + b"".join(attributes)

    # ---------------- Members ----------------

    def add_interface(self, name: str) -> "ClassFileBuilder":
        self.interfaces.append(self.class_ref(name))
        return self

    def annotate(self, *annotations: bytes, visible: bool = True) -> "ClassFileBuilder":
        self.attributes.append(self.annotations_attribute(annotations, visible=visible))
        return self

    def add_field(
        self,
        name: str,
        descriptor: str,
        access: int = ACC_PRIVATE,
        annotations: Sequence[bytes] = (),
        invisible_annotations: Sequence[bytes] = (),
    ) -> "ClassFileBuilder":
        attrs: List[bytes] = []
        if annotations:
            attrs.append(self.annotations_attribute(annotations))
        if invisible_annotations:
            attrs.append(self.annotations_attribute(invisible_annotations, visible=False))
        self.fields.append(self._member(access, name, descriptor, attrs))
        return self

    def add_method(
        self,
        name: str,
        descriptor: str,
        access: int = ACC_PUBLIC,
        annotations: Sequence[bytes] = (),
        parameter_names: Optional[Sequence[Optional[str]]] = None,
    ) -> "ClassFileBuilder":
        attrs: List[bytes] = []
        if annotations:
            attrs.append(self.annotations_attribute(annotations))
        if parameter_names is not None:
            attrs.append(self.method_parameters_attribute(parameter_names))
        self.methods.append(self._member(access, name, descriptor, attrs))
        return self

    # ---------------- Output ----------------

    def build(self) -> bytes:
        out = struct.pack(">IHH", MAGIC, 0, 52)
        out += struct.pack(">H", self._next) + b"".join(self._pool)
        out += struct.pack(">HHH", self.access, self.this_class, self.super_class)
        out += struct.pack(">H", len(self.interfaces))
        out += b"".join(struct.pack(">H", i) for i in self.interfaces)
        out += struct.pack(">H", len(self.fields)) + b"".join(self.fields)
        out += struct.pack(">H", len(self.methods)) + b"".join(self.methods)
        out += struct.pack(">H", len(self.attributes)) + b"".join(self.attributes)
        return out

    def parse(self) -> JavaClassInfo:
        return read_class(self.build())


@pytest.fixture
def classfile_builder():
    return ClassFileBuilder
