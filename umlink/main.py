import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException # type: ignore
from pydantic import BaseModel # type: ignore

from .assembler import link_diagram
from .config import MergedConfig
from .errors import ClassFormatError, DiagramParseError, DuplicateClassError
from .loader import ClassStore, load_class_bytes
from .mermaid.document import Diagram
from .mermaid.parser import parse_mermaid
from .mermaid.serializer import serialize_diagram

logger = logging.getLogger(__name__)

app = FastAPI(title="umlink (class files -> Mermaid class diagram)")


class ClassfilePayload(BaseModel):
    name: str   # file name, e.g. "Computer$State.class"
    data: str   # base64 of the .class bytes


class LinkRequest(BaseModel):
    diagram: str = ""
    classfiles: List[ClassfilePayload] = []
    skip: Optional[str] = None
    aggregate: Optional[str] = None
    compose: Optional[str] = None
    link: Optional[str] = None
    navigate: Optional[str] = None


class LinkResponse(BaseModel):
    mermaid: str
    classes: List[str]
    relations: int
    warnings: List[str]
    cir: Dict[str, Any]


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/uml/link", response_model=LinkResponse)
def uml_link(req: LinkRequest):
    store: ClassStore = {}
    warnings: List[str] = []

    for item in req.classfiles:
        try:
            data = base64.b64decode(item.data, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail=f"Class file {item.name} is not valid base64")

        try:
            load_class_bytes(store, item.name, data)
        except ClassFormatError as e:
            logger.warning("Skipping unparseable class file %s: %s", item.name, e)
            warnings.append(f"{item.name}: {e}")
        except DuplicateClassError as e:
            raise HTTPException(status_code=400, detail=str(e))

    try:
        diagram = parse_mermaid(req.diagram) if req.diagram.strip() else Diagram()
    except DiagramParseError as e:
        raise HTTPException(status_code=400, detail=f"Failed to parse diagram: {e}")

    config = MergedConfig(
        skip=req.skip,
        aggregate=req.aggregate,
        compose=req.compose,
        link=req.link,
        navigate=req.navigate,
    )
    diagram, graph = link_diagram(store, diagram, config)

    return LinkResponse(
        mermaid=serialize_diagram(diagram),
        classes=[model.name for _, model in diagram.classes()],
        relations=len(diagram.relations),
        warnings=warnings,
        cir=graph.to_debug_json(),
    )
