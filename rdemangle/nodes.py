"""Grammar nodes produced by the decoders, one class per production.

Nodes own their children, except for BackRef which only records the grammar offset
to re-enter the decoder at when the node is formatted.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

BASIC_TYPES = {
    "b": "bool",
    "c": "char",
    "e": "str",
    "u": "()",
    "a": "i8",
    "s": "i16",
    "l": "i32",
    "x": "i64",
    "n": "i128",
    "i": "isize",
    "h": "u8",
    "t": "u16",
    "m": "u32",
    "y": "u64",
    "o": "u128",
    "j": "usize",
    "f": "f32",
    "d": "f64",
    "z": "!",
    "p": "_",
    "v": "...",
}

UNSIGNED_CONST_TAGS = "htmyoj"
SIGNED_CONST_TAGS = "aslxni"


@dataclass
class Identifier:
    ascii: str
    punycode: str = ""
    # decoded form, equal to ascii unless punycode is present
    text: str = ""

    def __post_init__(self):
        if not self.text and not self.punycode:
            self.text = self.ascii

    @property
    def is_punycode(self) -> bool:
        return bool(self.punycode)

    def is_empty(self) -> bool:
        return not self.ascii and not self.punycode


@dataclass
class BackRef:
    offset: int
    # one of "path", "type", "const"
    kind: str


@dataclass
class CrateRoot:
    disambiguator: int
    name: Identifier


@dataclass
class NestedPath:
    # uppercase for special namespaces (closures, shims), lowercase otherwise
    namespace: str
    parent: "Path"
    disambiguator: int
    name: Identifier


@dataclass
class InherentImpl:
    disambiguator: int
    impl_path: "Path"
    self_type: "Type"


@dataclass
class TraitImpl:
    disambiguator: int
    impl_path: "Path"
    self_type: "Type"
    trait: "Path"


@dataclass
class TraitDefinition:
    self_type: "Type"
    trait: "Path"


@dataclass
class GenericInstantiation:
    parent: "Path"
    args: List["GenericArg"] = field(default_factory=list)


@dataclass
class PrimitiveType:
    tag: str

    @property
    def name(self) -> str:
        return BASIC_TYPES[self.tag]


@dataclass
class ReferenceType:
    mutable: bool
    lifetime: int
    inner: "Type"


@dataclass
class RawPointerType:
    mutable: bool
    inner: "Type"


@dataclass
class ArrayType:
    inner: "Type"
    length: "Const"


@dataclass
class SliceType:
    inner: "Type"


@dataclass
class TupleType:
    elements: List["Type"] = field(default_factory=list)


@dataclass
class FnSigType:
    binder: int
    is_unsafe: bool
    abi: Optional[str]
    params: List["Type"]
    # None when the return type is ()
    return_type: Optional["Type"]


@dataclass
class DynTrait:
    path: "Path"
    projections: List[Tuple[Identifier, "Type"]] = field(default_factory=list)


@dataclass
class DynTraitType:
    binder: int
    bounds: List[DynTrait]
    lifetime: int


@dataclass
class Lifetime:
    index: int


@dataclass
class PlaceholderConst:
    pass


@dataclass
class IntConst:
    tag: str
    negative: bool
    nibbles: str

    @property
    def value(self) -> int:
        magnitude = int(self.nibbles, 16) if self.nibbles else 0
        return -magnitude if self.negative else magnitude


@dataclass
class BoolConst:
    value: bool
    tag: str = "b"


@dataclass
class CharConst:
    value: str
    tag: str = "c"


@dataclass
class StrConst:
    value: str
    # referenced literals (&str) render without the leading deref
    referenced: bool = False


@dataclass
class RefConst:
    mutable: bool
    inner: "Const"


@dataclass
class LegacySymbol:
    elements: List[str]
    suffix: str = ""


@dataclass
class V0Symbol:
    path: "Path"
    instantiating_crate: Optional["Path"] = None
    suffix: str = ""


Path = Union[CrateRoot, NestedPath, InherentImpl, TraitImpl, TraitDefinition, GenericInstantiation, BackRef]
Type = Union[
    Path, PrimitiveType, ReferenceType, RawPointerType, ArrayType, SliceType, TupleType, FnSigType, DynTraitType
]
Const = Union[PlaceholderConst, IntConst, BoolConst, CharConst, StrConst, RefConst, BackRef]
GenericArg = Union[Lifetime, Type, Const]

PATH_NODES = (CrateRoot, NestedPath, InherentImpl, TraitImpl, TraitDefinition, GenericInstantiation)
CONST_NODES = (PlaceholderConst, IntConst, BoolConst, CharConst, StrConst, RefConst)
