from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from docspan.search.hits import AnnotationHit, AttachmentNameHit, DocxBlockHit, MainDocFieldHit
from docspan.search.snippets import (
    ANNOTATION_AFTER,
    ANNOTATION_BEFORE,
    block_order,
    field_rank,
    make_snippet,
    normalize_for_dedupe,
)
from docspan.text.intervals import Range

logger = logging.getLogger(__name__)

TAG_EXCERPT = "Фрагмент"
TAG_ATTACHMENT = "Имя вложения"
TAG_ANNOTATION = "Аннотация"

# Полосы сортировки кандидатов внутри контейнера
BAND_PARAGRAPH = 0
BAND_FIELD = 1
BAND_ANNOTATION = 2
BAND_ATTACHMENT = 3


@dataclass
class HitGroup:
    """
    Сырые совпадения одного архива, разложенные по видам.
    """

    archive_id: str
    first_index: int
    docx_blocks: list[DocxBlockHit] = field(default_factory=list)
    fields: list[MainDocFieldHit] = field(default_factory=list)
    annotations: list[AnnotationHit] = field(default_factory=list)
    attachments: list[AttachmentNameHit] = field(default_factory=list)

    @property
    def total_hits(self) -> int:
        return len(self.docx_blocks) + len(self.fields) + len(self.annotations) + len(self.attachments)


@dataclass(frozen=True)
class SnippetCandidate:
    """
    Представительный отрывок для карточки архива.

    Parameters
    ----------
    key : str
        Стабильный ключ кандидата (вид + идентификатор)
    tag : str
        Метка вида для отображения
    text : str
        Текст отрывка
    ranges : list[Range]
        Подсветка в координатах отрывка
    hit : SearchHit
        Исходное совпадение, по которому строится переход
    sort_key : tuple
        (полоса, порядок внутри полосы)
    """

    key: str
    tag: str
    text: str
    ranges: list[Range]
    hit: object
    sort_key: tuple


@dataclass
class ContainerCard:
    archive_id: str
    total_hits: int
    docx_hits: int
    field_hits: int
    annotation_hits: int
    attachment_hits: int
    snippets: list[SnippetCandidate] = field(default_factory=list)


def group_hits(hits: Iterable) -> list[HitGroup]:
    """
    Разбивает плоский список совпадений по archive_id.

    Parameters
    ----------
    hits : Iterable[SearchHit]
        Совпадения в порядке выдачи бэкенда (все загруженные страницы)

    Returns
    -------
    list[HitGroup]
        Группы в порядке первого появления архива
    """
    groups: dict[str, HitGroup] = {}
    for idx, hit in enumerate(hits):
        group = groups.get(hit.archive_id)
        if group is None:
            group = HitGroup(archive_id=hit.archive_id, first_index=idx)
            groups[hit.archive_id] = group
        if isinstance(hit, DocxBlockHit):
            group.docx_blocks.append(hit)
        elif isinstance(hit, MainDocFieldHit):
            group.fields.append(hit)
        elif isinstance(hit, AnnotationHit):
            group.annotations.append(hit)
        elif isinstance(hit, AttachmentNameHit):
            group.attachments.append(hit)
        else:
            logger.warning("Пропущено совпадение неизвестного вида: %r", hit)
    return sorted(groups.values(), key=lambda g: g.first_index)


def _candidates(group: HitGroup) -> list[SnippetCandidate]:
    out: list[SnippetCandidate] = []

    if group.docx_blocks:
        for hit in sorted(group.docx_blocks, key=lambda h: block_order(h.block_id)):
            sn = make_snippet(hit.block_text, hit.highlights)
            out.append(
                SnippetCandidate(
                    key=f"docx:{hit.block_id}",
                    tag=TAG_EXCERPT,
                    text=sn.text,
                    ranges=sn.ranges,
                    hit=hit,
                    sort_key=(BAND_PARAGRAPH, block_order(hit.block_id)),
                )
            )
    else:
        # поля показываются, только если в архиве нет совпадений по абзацам
        for hit in sorted(group.fields, key=lambda h: field_rank(h.field_name)):
            sn = make_snippet(hit.source_text, hit.highlights)
            out.append(
                SnippetCandidate(
                    key=f"field:{hit.field_name}",
                    tag=TAG_EXCERPT,
                    text=sn.text,
                    ranges=sn.ranges,
                    hit=hit,
                    sort_key=(BAND_FIELD, field_rank(hit.field_name)),
                )
            )

    for rank, hit in enumerate(sorted(group.annotations, key=lambda h: -len(h.content or ""))):
        sn = make_snippet(hit.content, hit.highlights, ANNOTATION_BEFORE, ANNOTATION_AFTER)
        out.append(
            SnippetCandidate(
                key=f"anno:{hit.annotation_id}",
                tag=TAG_ANNOTATION,
                text=sn.text,
                ranges=sn.ranges,
                hit=hit,
                sort_key=(BAND_ANNOTATION, rank),
            )
        )

    for rank, hit in enumerate(sorted(group.attachments, key=lambda h: h.display_name)):
        out.append(
            SnippetCandidate(
                key=f"att:{hit.file_id}",
                tag=TAG_ATTACHMENT,
                text=hit.display_name,
                ranges=list(hit.highlights),
                hit=hit,
                sort_key=(BAND_ATTACHMENT, rank),
            )
        )
    return out


def dedupe_candidates(candidates: Iterable[SnippetCandidate]) -> list[SnippetCandidate]:
    """
    Сортирует кандидатов по приоритету и убирает дубликаты по нормализованному тексту.

    Из дубликатов остаётся первый по сортировке (самый приоритетный);
    кандидаты с пустой нормализованной формой отбрасываются.
    """
    unique: list[SnippetCandidate] = []
    seen: set[str] = set()
    for c in sorted(candidates, key=lambda c: c.sort_key):
        norm = normalize_for_dedupe(c.text)
        if not norm or norm in seen:
            continue
        seen.add(norm)
        unique.append(c)
    return unique


def build_cards(hits: Iterable) -> list[ContainerCard]:
    """
    Карточки архивов: счётчики совпадений по видам и список отрывков.

    Parameters
    ----------
    hits : Iterable[SearchHit]
        Накопленные совпадения

    Returns
    -------
    list[ContainerCard]
        Карточки в порядке первого появления архива
    """
    cards: list[ContainerCard] = []
    for group in group_hits(hits):
        cards.append(
            ContainerCard(
                archive_id=group.archive_id,
                total_hits=group.total_hits,
                docx_hits=len(group.docx_blocks),
                field_hits=len(group.fields),
                annotation_hits=len(group.annotations),
                attachment_hits=len(group.attachments),
                snippets=dedupe_candidates(_candidates(group)),
            )
        )
    return cards
