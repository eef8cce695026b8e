"""Search commands - text, image and hybrid."""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Sequence

import click

from semsearch.cli.decorators import (
    handle_errors,
    with_content_types,
    with_output_format,
    with_ranking_options,
)
from semsearch.cli.handlers import SearchHandler
from semsearch.cli.output import (
    OutputFormatter,
    extract_display_metadata,
    format_score,
    truncate_text,
)
from semsearch.core.config import FusionWeights
from semsearch.core.types import (
    ContentType,
    FusedSearchResult,
    SearchMode,
    SearchResult,
    content_type_display_name,
)
from semsearch.utils.config import get_config
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)
out = OutputFormatter()


@click.group(name="search")
def search_group():
    """Search indexed content by text, by image, or by both.

    Results are filtered by the similarity and rerank thresholds, ordered by
    score and capped per mode (see the ``ranking`` section of config.yml).
    """
    pass


def _with_links(f):
    return click.option(
        "--links",
        is_flag=True,
        default=False,
        help="Show CMS edit links for entries",
    )(f)


@search_group.command(name="text")
@click.argument("query")
@click.option(
    "--type",
    "search_type",
    type=click.Choice(["semantic", "text"]),
    default="semantic",
    help="Semantic search with reranking, or plain text search (default: semantic)",
)
@with_content_types
@with_ranking_options
@_with_links
@with_output_format
@handle_errors
def text_cmd(
    query,
    search_type,
    content_types,
    min_similarity,
    min_rerank,
    max_results,
    links,
    output_format,
):
    """Search entries with a text query.

    \b
    Examples:
        semsearch search text "waterproof hiking boots"
        semsearch search text "returns policy" --type text --content-type page
        semsearch search text "summer sale" --min-similarity 0.4 -n 10 --format json
    """
    handler = SearchHandler(get_config())
    ranking = handler.ranking_config(
        mode=search_type,
        max_results=max_results,
        min_similarity=min_similarity,
        min_rerank=min_rerank,
    )
    request = handler.build_request(
        search_type, query=query, content_types=content_types, config=ranking
    )

    if output_format == "text":
        out.progress_start(f"Searching ({search_type}) for: {query}")
    results, known_types, entry_links = handler.search_with_details(request, links)
    _display_results(results, request.mode, output_format, known_types, entry_links, query=query)


@search_group.command(name="image")
@click.argument("image")
@with_ranking_options
@with_output_format
@handle_errors
def image_cmd(image, min_similarity, min_rerank, max_results, output_format):
    """Find assets similar to an image URL or a local image file.

    \b
    Examples:
        semsearch search image https://cdn.example.com/shoe.jpg
        semsearch search image ./photos/jacket.png -n 20
    """
    handler = SearchHandler(get_config())
    ranking = handler.ranking_config(
        mode=SearchMode.IMAGE,
        max_results=max_results,
        min_similarity=min_similarity,
        min_rerank=min_rerank,
    )
    request = handler.build_request(SearchMode.IMAGE, image=image, config=ranking)

    if output_format == "text":
        source = request.image.filename if request.image else request.image_url
        out.progress_start(f"Searching by image: {source}")
    results = handler.search(request)
    _display_results(results, request.mode, output_format, [], {}, image=image)


@search_group.command(name="hybrid")
@click.option("--text", "query", help="Text query")
@click.option("--image", help="Image URL or path to a local image file")
@click.option(
    "--text-weight",
    type=click.FloatRange(0.0, 1.0),
    help="Weight of the text channel; the image channel gets 1 - weight (default: 0.7)",
)
@click.option(
    "--strategy",
    type=click.Choice(["client", "server"]),
    help="Fuse locally (client) or let the backend fuse (server)",
)
@click.option(
    "--post-fusion",
    type=click.Choice(["combined", "per_axis", "none"]),
    help="Threshold applied after fusion (default: hybrid.post_fusion)",
)
@click.option(
    "--min-fused-score",
    type=float,
    help="Minimum fused score for the 'combined' policy",
)
@click.option(
    "--fusion-key",
    type=click.Choice(["uid", "modality"]),
    help="Merge text and image hits by uid, or keep them apart",
)
@with_content_types
@with_ranking_options
@with_output_format
@handle_errors
def hybrid_cmd(
    query,
    image,
    text_weight,
    strategy,
    post_fusion,
    min_fused_score,
    fusion_key,
    content_types,
    min_similarity,
    min_rerank,
    max_results,
    output_format,
):
    """Combine a text query and an image into one ranked list.

    \b
    Examples:
        semsearch search hybrid --text "red dress" --image https://cdn.example.com/dress.jpg
        semsearch search hybrid --text "red dress" --image ./dress.png --text-weight 0.5
        semsearch search hybrid --text "red dress" --strategy server
    """
    if not query and not image:
        out.error("Provide --text, --image, or both", abort=True)

    handler = SearchHandler(get_config())
    ranking = handler.ranking_config(
        mode=SearchMode.HYBRID,
        max_results=max_results,
        min_similarity=min_similarity,
        min_rerank=min_rerank,
        weights=(
            FusionWeights.from_text_weight(text_weight)
            if text_weight is not None
            else None
        ),
        hybrid_strategy=strategy,
        post_fusion=post_fusion,
        min_fused_score=min_fused_score,
        fusion_key=fusion_key,
    )
    request = handler.build_request(
        SearchMode.HYBRID,
        query=query,
        image=image,
        content_types=content_types,
        config=ranking,
    )

    if output_format == "text":
        weights = ranking.weights
        out.progress_start(
            f"Hybrid search (text {weights.text:.2f} / image {weights.image:.2f}, "
            f"{ranking.hybrid_strategy})"
        )
    results = handler.search(request)
    _display_results(results, request.mode, output_format, [], {}, query=query, image=image)


def _display_results(
    results: Sequence[SearchResult],
    mode: SearchMode,
    output_format: str,
    content_types: List[ContentType],
    entry_links: Dict[str, str],
    query: Optional[str] = None,
    image: Optional[str] = None,
) -> None:
    """Display consolidated search results."""
    if output_format == "json":
        result_dicts = []
        for rank, result in enumerate(results, 1):
            data = {"rank": rank, **result.to_dict()}
            if result.uid in entry_links:
                data["entryUrl"] = entry_links[result.uid]
            result_dicts.append(data)
        output = {
            "mode": mode.value,
            "query": query,
            "image": image,
            "count": len(result_dicts),
            "results": result_dicts,
        }
        click.echo(json.dumps(output, indent=2))
        return

    if not results:
        out.warning("No results found")
        return

    out.success(f"Found {len(results)} results:")

    for rank, result in enumerate(results, 1):
        out.section("=" * 80)
        click.echo(f"#{rank} {result.title or result.uid}")

        if isinstance(result, FusedSearchResult):
            click.echo(
                f"Fused: {format_score(result.fused_score)} "
                f"(text {format_score(result.text_score)}, "
                f"image {format_score(result.image_score)})"
            )
        click.echo(
            f"Similarity: {format_score(result.similarity)} | "
            f"Rerank: {format_score(result.rerank_score)}"
        )
        if result.content_type:
            label = content_type_display_name(result.content_type, content_types)
            locale = f" [{result.locale}]" if result.locale else ""
            click.echo(f"Content type: {label}{locale}")

        description = result.get("description")
        if description:
            click.echo(f"\n{truncate_text(str(description))}")

        metadata = extract_display_metadata(result)
        if metadata:
            click.echo("")
            for key, value in metadata.items():
                click.echo(f"  {key}: {truncate_text(str(value), 100)}")

        if result.uid in entry_links:
            click.echo(f"\nEdit: {entry_links[result.uid]}")

    out.section("=" * 80)
