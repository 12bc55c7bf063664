import logging
from typing import List, Optional, Sequence, Tuple

from javatools import (  # type: ignore
    ACC_PRIVATE,
    ACC_PROTECTED,
    ACC_PUBLIC,
    JavaClassInfo,
    JavaMemberInfo,
)

from ..cir.model import (
    ABSTRACT,
    ENUMERATION,
    INTERFACE,
    Attribute,
    ClassModel,
    LineStyle,
    Member,
    Method,
    Parameter,
    Relation,
    RelationKind,
    Visibility,
)
from ..classinfo import method_parameter_names
from ..descriptor import VOID, decode_field, decode_method, object_type_name
from .annotations import has_annotation, relationship_params

logger = logging.getLogger(__name__)

CONSTRUCTOR = "<init>"
STATIC_INITIALIZER = "<clinit>"
LAMBDA_PREFIX = "lambda$"

SYNTHETIC_MARKER = "$"
NESTED_SEPARATOR = "."

# superclasses that mean "no explicit superclass"
IMPLICIT_SUPERCLASSES = {"java/lang/Object", "java/lang/Enum"}

RelationshipAnnotations = Sequence[Tuple[str, RelationKind]]


def display_type_name(type_name: str) -> str:
    """Nested classes use "." in diagrams: "Computer$State" -> "Computer.State"."""
    return type_name.replace(SYNTHETIC_MARKER, NESTED_SEPARATOR)


def simple_class_name(internal_name: str) -> str:
    """
    "com/example/Computer$State" -> "Computer.State"
    """
    return display_type_name(internal_name.rsplit("/", 1)[-1])


def positional_name(index: int) -> str:
    return f"arg{index}"


class ClassfileAdapter:
    """
    JavaClassInfo -> ClassModel + relation candidates.

    Builds the diagram view of one unpacked class record:
      - class kind (<<interface>>, <<enumeration>>, <<abstract>>)
      - attributes and methods with visibility / static / abstract flags
      - INHERITANCE / REALIZATION relations from superclass and interfaces
      - AGGREGATION / COMPOSITION / ASSOCIATION relations from annotated fields

    Members carrying the skip annotation are left out. Fields carrying one of
    the relationship annotations are left out as attributes and show up as
    relations instead. Constructors, static initializers and lambda bodies
    are never members.
    """

    def __init__(
        self,
        skip_annotation: Optional[str] = None,
        relationship_annotations: RelationshipAnnotations = (),
    ) -> None:
        self.skip_annotation = skip_annotation
        # priority order matters: first matching annotation wins per field
        self.relationship_annotations: List[Tuple[str, RelationKind]] = [
            (name, kind) for name, kind in relationship_annotations if name
        ]

    # ---------------- Helpers ----------------

    def _visibility_from_flags(self, flags: int) -> Visibility:
        if flags & ACC_PUBLIC:
            return "public"
        if flags & ACC_PRIVATE:
            return "private"
        if flags & ACC_PROTECTED:
            return "protected"
        return "package"

    def _class_kind(self, info: JavaClassInfo) -> Optional[str]:
        if info.is_interface():
            return INTERFACE
        if info.is_enum():
            return ENUMERATION
        if info.is_abstract():
            return ABSTRACT
        return None

    def _parameter_names(self, method: JavaMemberInfo, count: int) -> List[str]:
        """
        Names from the MethodParameters attribute when it lists exactly
        `count` entries, positional arg0..argN otherwise. A slot without a
        name falls back to the positional name for that slot.
        """
        recorded = method_parameter_names(method)
        if recorded is None or len(recorded) != count:
            return [positional_name(i) for i in range(count)]
        return [name or positional_name(i) for i, name in enumerate(recorded)]

    def _is_relationship_field(self, field: JavaMemberInfo) -> bool:
        return any(has_annotation(field, name) for name, _ in self.relationship_annotations)

    def is_skipped(self, info: JavaClassInfo) -> bool:
        """Class-level suppression: the class definition is dropped entirely."""
        return has_annotation(info, self.skip_annotation)

    # ---------------- Class model ----------------

    def _field_to_attribute(self, field: JavaMemberInfo, class_name: str) -> Attribute:
        name = field.get_name().replace(SYNTHETIC_MARKER, "")
        data_type = display_type_name(decode_field(field.get_descriptor()))

        # enum constants carry ACC_ENUM and are typed with their own class
        if field.is_enum() and data_type == class_name:
            return Attribute(name=name, data_type=None, visibility="unspecified", is_static=False)

        return Attribute(
            name=name,
            data_type=data_type,
            visibility=self._visibility_from_flags(field.access_flags),
            is_static=bool(field.is_static()),
        )

    def _method_to_member(self, method: JavaMemberInfo) -> Optional[Method]:
        name = method.get_name()
        if name in (CONSTRUCTOR, STATIC_INITIALIZER) or name.startswith(LAMBDA_PREFIX):
            return None

        param_types, return_type = decode_method(method.get_descriptor())
        param_names = self._parameter_names(method, len(param_types))

        parameters = [
            Parameter(name=pname, data_type=display_type_name(ptype))
            for pname, ptype in zip(param_names, param_types)
        ]

        return Method(
            name=name.replace(SYNTHETIC_MARKER, ""),
            parameters=parameters,
            return_type=None if return_type == VOID else display_type_name(return_type),
            visibility=self._visibility_from_flags(method.access_flags),
            is_static=bool(method.is_static()),
            is_abstract=bool(method.is_abstract()),
        )

    def to_class_model(self, info: JavaClassInfo, class_name: str) -> ClassModel:
        annotations: List[str] = []
        kind = self._class_kind(info)
        if kind:
            annotations.append(kind)

        members: List[Member] = []

        # ---------- fields ----------
        for field in info.fields:
            if has_annotation(field, self.skip_annotation):
                continue
            if self._is_relationship_field(field):
                continue
            members.append(self._field_to_attribute(field, class_name))

        # ---------- methods ----------
        for method in info.methods:
            if has_annotation(method, self.skip_annotation):
                continue
            member = self._method_to_member(method)
            if member is not None:
                members.append(member)

        logger.debug("Extracted %s: %d member(s), kind=%s", class_name, len(members), kind)
        return ClassModel(name=class_name, annotations=annotations, members=members)

    # ---------------- Relations ----------------

    def field_relations(self, info: JavaClassInfo, class_name: str) -> List[Relation]:
        """
        One relation per annotated object-typed field, skipped fields
        included. Arrays and primitives never produce a relation.
        """
        relations: List[Relation] = []

        for field in info.fields:
            target = object_type_name(field.get_descriptor())
            if target is None:
                continue

            for annotation_name, kind in self.relationship_annotations:
                params = relationship_params(field, annotation_name)
                if params is None:
                    continue
                self_card, label, other_card = params
                relations.append(
                    Relation(
                        tail=class_name,
                        head=display_type_name(target),
                        kind=kind,
                        cardinality_tail=self_card or None,
                        cardinality_head=other_card or None,
                        label=label or None,
                    )
                )
                break  # only one relation per field

        return relations

    def superclass_relation(self, info: JavaClassInfo, class_name: str) -> Optional[Relation]:
        superclass = info.get_super()
        if not superclass or superclass in IMPLICIT_SUPERCLASSES:
            return None
        return Relation(tail=class_name, head=simple_class_name(superclass), kind=RelationKind.INHERITANCE)

    def interface_relations(self, info: JavaClassInfo, class_name: str) -> List[Relation]:
        return [
            Relation(
                tail=class_name,
                head=simple_class_name(iface),
                kind=RelationKind.REALIZATION,
                line=LineStyle.DOTTED,
            )
            for iface in info.get_interfaces()
        ]

    def relation_candidates(self, info: JavaClassInfo, class_name: str) -> List[Relation]:
        """Field relations, then inheritance, then realizations."""
        relations = self.field_relations(info, class_name)
        inherits = self.superclass_relation(info, class_name)
        if inherits is not None:
            relations.append(inherits)
        relations.extend(self.interface_relations(info, class_name))
        return relations
