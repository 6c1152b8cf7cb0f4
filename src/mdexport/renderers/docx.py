"""Word-processor (.docx) backend built on python-docx.

Fragments are the body elements (``w:p`` / ``w:tbl``) appended to the
document while a block renders. Blockquotes post-process the elements their
children produced: paragraphs gain an indent and a left border, while tables,
which cannot carry a paragraph border, are swapped for a marker paragraph.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import nsdecls, qn
from docx.shared import Emu, Inches, Pt, RGBColor
from docx.text.paragraph import Paragraph as DocxParagraph
from docx.text.run import Run

from mdexport.exceptions import RenderError
from mdexport.renderers.base import (
    IMAGE_ALT_FALLBACK,
    PLAIN,
    InlineStyle,
    Renderer,
    code_lines,
)
from mdexport.schemas import (
    Blockquote,
    CodeBlock,
    DiagramLink,
    DocumentTree,
    Heading,
    HorizontalRule,
    Hyperlink,
    Image,
    ListBlock,
    Paragraph,
    Table,
)

logger = logging.getLogger(__name__)

# Fixed package metadata so identical trees give identical bytes.
FIXED_TIMESTAMP = datetime(2000, 1, 1)
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)

CODE_FONT_SIZE = Pt(10)
HEADER_SHADING = "D3D3D3"
QUOTE_BORDER_COLOR = "AAAAAA"
QUOTE_INDENT = Inches(0.5)
LIST_INDENT_STEP = 0.25
MAX_LIST_STYLE_LEVEL = 3
LINK_COLOR = RGBColor(0x05, 0x63, 0xC1)
MUTED_COLOR = RGBColor(0x99, 0x99, 0x99)
TABLE_IN_QUOTE_MARKER = "[Table in blockquote - formatting limited]"

# Characters XML 1.0 cannot hold. Vertical tab and form feed become breaks.
_XML_UNSAFE: dict[int, str | None] = dict.fromkeys((*range(0x09), *range(0x0E, 0x20), 0xFFFE, 0xFFFF))
_XML_UNSAFE.update({0x0B: "\n", 0x0C: "\n"})

# w:pPr children that must follow w:pBdr / w:shd (CT_PPr sequence order).
_SHD_SUCCESSORS = (
    "w:tabs",
    "w:suppressAutoHyphens",
    "w:kinsoku",
    "w:wordWrap",
    "w:overflowPunct",
    "w:topLinePunct",
    "w:autoSpaceDE",
    "w:autoSpaceDN",
    "w:bidi",
    "w:adjustRightInd",
    "w:snapToGrid",
    "w:spacing",
    "w:ind",
    "w:contextualSpacing",
    "w:mirrorIndents",
    "w:suppressOverlap",
    "w:jc",
    "w:textDirection",
    "w:textAlignment",
    "w:textboxTightWrap",
    "w:outlineLvl",
    "w:divId",
    "w:cnfStyle",
    "w:rPr",
    "w:sectPr",
    "w:pPrChange",
)
_PBDR_SUCCESSORS = ("w:shd",) + _SHD_SUCCESSORS


def shade(properties: Any, color: str) -> None:
    """Add a solid background fill to a ``w:pPr`` or ``w:tcPr`` element."""
    shading = parse_xml(f'<w:shd {nsdecls("w")} w:fill="{color}" w:val="clear"/>')
    if properties.tag == qn("w:pPr"):
        properties.insert_element_before(shading, *_SHD_SUCCESSORS)
    else:
        properties.append(shading)


def xml_safe(text: str) -> str:
    return text.translate(_XML_UNSAFE)


def stable_zip(data: bytes) -> bytes:
    """Rewrite a zip archive with fixed member timestamps."""
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as source, zipfile.ZipFile(
        out, "w", zipfile.ZIP_DEFLATED
    ) as target:
        for info in source.infolist():
            entry = zipfile.ZipInfo(info.filename, date_time=ZIP_TIMESTAMP)
            entry.compress_type = zipfile.ZIP_DEFLATED
            entry.external_attr = 0o644 << 16
            target.writestr(entry, source.read(info.filename))
    return out.getvalue()


@dataclass
class _RunTarget:
    """Where inline runs go: a paragraph, optionally inside a hyperlink."""

    paragraph: DocxParagraph
    link: Any = None


class DocxRenderer(Renderer[Any]):
    """Render a document tree into a ``.docx`` package."""

    format_name = "docx"
    extension = ".docx"

    def render(self, document: DocumentTree) -> bytes:
        self._doc = Document()
        self._link_ids: list[str] = []
        self.render_blocks(document.blocks)
        try:
            return self._package()
        except Exception as exc:
            raise RenderError(f"Could not package DOCX document: {exc}") from exc

    def _package(self) -> bytes:
        core = self._doc.core_properties
        core.created = FIXED_TIMESTAMP
        core.modified = FIXED_TIMESTAMP
        core.last_modified_by = "mdexport"
        core.revision = 1
        buffer = io.BytesIO()
        self._doc.save(buffer)
        return stable_zip(buffer.getvalue())

    # -- partial output rollback --------------------------------------------
    def _body_elements(self) -> list[Any]:
        body = self._doc.element.body
        return [child for child in body.iterchildren() if child.tag != qn("w:sectPr")]

    def _checkpoint(self) -> tuple[int, int]:
        return len(self._body_elements()), len(self._link_ids)

    def _rollback(self, checkpoint: tuple[int, int]) -> None:
        elements, links = checkpoint
        for element in self._body_elements()[elements:]:
            element.getparent().remove(element)
        # Hyperlink relationships are shared per URL; keep ones still referenced.
        in_use = set(self._doc.element.xpath("//@r:id"))
        part = self._doc.part
        for r_id in dict.fromkeys(self._link_ids[links:]):
            if r_id not in in_use and r_id in part.rels:
                part.drop_rel(r_id)
        del self._link_ids[links:]

    # -- blocks -------------------------------------------------------------
    def heading(self, block: Heading) -> list[Any]:
        paragraph = self._doc.add_paragraph(style=f"Heading {block.level}")
        self.render_inlines(block.content, _RunTarget(paragraph))
        return [paragraph._p]

    def paragraph(self, block: Paragraph) -> list[Any]:
        paragraph = self._doc.add_paragraph()
        self.render_inlines(block.content, _RunTarget(paragraph))
        return [paragraph._p]

    def code(self, block: CodeBlock) -> list[Any]:
        font = self.settings.code_block_font
        elements: list[Any] = []
        if self.show_language_label(block):
            label = self._doc.add_paragraph()
            label.paragraph_format.space_after = Pt(0)
            run = label.add_run(xml_safe(block.language))
            run.bold = True
            run.font.name = font
            elements.append(label._p)
        for line in code_lines(block.content):
            paragraph = self._doc.add_paragraph()
            shade(paragraph._p.get_or_add_pPr(), self.settings.code_background_hex)
            paragraph.paragraph_format.space_before = Pt(0)
            paragraph.paragraph_format.space_after = Pt(0)
            run = paragraph.add_run(xml_safe(line))
            run.font.name = font
            run.font.size = CODE_FONT_SIZE
            elements.append(paragraph._p)
        return elements

    def diagram_link(self, block: DiagramLink) -> list[Any]:
        paragraph = self._doc.add_paragraph()
        target = _RunTarget(paragraph, self._hyperlink(paragraph, block.url))
        self.emit_text(target, self.diagram_link_text(block), PLAIN)
        return [paragraph._p]

    def list_block(self, block: ListBlock, depth: int) -> list[Any]:
        base = "List Number" if block.ordered else "List Bullet"
        level = min(depth, MAX_LIST_STYLE_LEVEL - 1)
        style = base if level == 0 else f"{base} {level + 1}"
        elements: list[Any] = []
        for item in block.items:
            paragraph = self._doc.add_paragraph(style=style)
            if depth >= MAX_LIST_STYLE_LEVEL:
                paragraph.paragraph_format.left_indent = Inches(LIST_INDENT_STEP * (depth + 1))
            self.render_inlines(item.content, _RunTarget(paragraph))
            elements.append(paragraph._p)
            if item.children is not None:
                elements.extend(self.list_block(item.children, depth + 1))
        return elements

    def table(self, block: Table) -> list[Any]:
        if not block.headers:
            logger.debug("Skipping table without header cells")
            return []
        table = self._doc.add_table(rows=1 + len(block.rows), cols=len(block.headers))
        table.style = "Table Grid"
        for cell, content in zip(table.rows[0].cells, block.headers):
            self.render_inlines(content, _RunTarget(cell.paragraphs[0]), InlineStyle(bold=True))
            shade(cell._tc.get_or_add_tcPr(), HEADER_SHADING)
        for row, cells in zip(table.rows[1:], block.rows):
            for cell, content in zip(row.cells, cells):
                self.render_inlines(content, _RunTarget(cell.paragraphs[0]))
        return [table._tbl]

    def blockquote(self, block: Blockquote) -> list[Any]:
        quoted: list[Any] = []
        for element in self.render_blocks(block.content):
            if element.tag == qn("w:tbl"):
                marker = self._doc.add_paragraph()
                marker.add_run(TABLE_IN_QUOTE_MARKER).italic = True
                element.addprevious(marker._p)
                element.getparent().remove(element)
                element = marker._p
            self._quote(element)
            quoted.append(element)
        return quoted

    def _quote(self, element: Any) -> None:
        paragraph = DocxParagraph(element, self._doc._body)
        properties = element.get_or_add_pPr()
        borders = properties.find(qn("w:pBdr"))
        if borders is None:
            borders = parse_xml(f'<w:pBdr {nsdecls("w")}/>')
            properties.insert_element_before(borders, *_PBDR_SUCCESSORS)
        if borders.find(qn("w:left")) is None:
            borders.insert(
                0,
                parse_xml(
                    f'<w:left {nsdecls("w")} w:val="single" w:sz="12" w:space="8" '
                    f'w:color="{QUOTE_BORDER_COLOR}"/>'
                ),
            )
        current = paragraph.paragraph_format.left_indent or 0
        paragraph.paragraph_format.left_indent = Emu(current + QUOTE_INDENT)

    def horizontal_rule(self, block: HorizontalRule) -> list[Any]:
        paragraph = self._doc.add_paragraph()
        paragraph._p.get_or_add_pPr().insert_element_before(
            parse_xml(
                f'<w:pBdr {nsdecls("w")}>'
                '<w:bottom w:val="single" w:sz="6" w:space="1" w:color="auto"/>'
                "</w:pBdr>"
            ),
            *_PBDR_SUCCESSORS,
        )
        return [paragraph._p]

    def image_embed(self, block: Image) -> list[Any]:
        # Remote bytes are never fetched, so the picture is described instead.
        paragraph = self._doc.add_paragraph()
        alt = block.alt_text or IMAGE_ALT_FALLBACK
        paragraph.add_run(xml_safe(f"[Image: {alt}] ({block.url})")).italic = True
        return [paragraph._p]

    def image_link(self, block: Image, label: str) -> list[Any]:
        paragraph = self._doc.add_paragraph()
        target = _RunTarget(paragraph, self._hyperlink(paragraph, block.url))
        self.emit_text(target, label, PLAIN)
        return [paragraph._p]

    def error_fragment(self, kind: str) -> Any:
        paragraph = self._doc.add_paragraph()
        run = paragraph.add_run(f"[Error rendering {kind} block]")
        run.italic = True
        run.font.color.rgb = MUTED_COLOR
        return paragraph._p

    # -- inlines ------------------------------------------------------------
    def _hyperlink(self, paragraph: DocxParagraph, url: str) -> Any:
        r_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)
        link = OxmlElement("w:hyperlink")
        link.set(qn("r:id"), r_id)
        self._link_ids.append(r_id)
        paragraph._p.append(link)
        return link

    def _place(self, target: _RunTarget, run: Run, style: InlineStyle) -> None:
        if style.bold:
            run.bold = True
        if style.italic:
            run.italic = True
        if style.strike:
            run.font.strike = True
        if target.link is not None:
            run.font.color.rgb = LINK_COLOR
            run.font.underline = True
            target.link.append(run._r)

    def emit_text(self, target: _RunTarget, text: str, style: InlineStyle) -> None:
        self._place(target, target.paragraph.add_run(xml_safe(text)), style)

    def emit_code(self, target: _RunTarget, text: str, style: InlineStyle) -> None:
        run = target.paragraph.add_run(xml_safe(text))
        run.font.name = self.settings.code_block_font
        self._place(target, run, style)

    def emit_link(self, target: _RunTarget, node: Hyperlink, style: InlineStyle) -> None:
        if target.link is not None or not node.url:
            self.render_inlines(node.text, target, style)
            return
        link = self._hyperlink(target.paragraph, node.url)
        self.render_inlines(node.text, _RunTarget(target.paragraph, link), style)
