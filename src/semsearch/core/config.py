"""Per-invocation configuration of the consolidation pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from semsearch.core.errors import ConfigurationError
from semsearch.core.types import SearchMode
from semsearch.utils.config import Config, get_config

WEIGHT_TOLERANCE = 1e-6

POST_FUSION_POLICIES = ("combined", "per_axis", "none")
FUSION_KEYS = ("uid", "modality")
HYBRID_STRATEGIES = ("client", "server")


def _default_max_results() -> Dict[str, int]:
    return {
        SearchMode.TEXT.value: 5,
        SearchMode.SEMANTIC.value: 5,
        SearchMode.IMAGE.value: 12,
        SearchMode.HYBRID.value: 5,
    }


@dataclass(frozen=True)
class FusionWeights:
    """Weights of the text and image channels in a hybrid search.

    The two weights must sum to 1.0. Nothing renormalizes them silently;
    use :meth:`from_text_weight` to derive a valid pair from one slider value.
    """

    text: float = 0.7
    image: float = 0.3

    @classmethod
    def from_text_weight(cls, text: float) -> FusionWeights:
        """Derive the image weight as ``1 - text``."""
        return cls(text=text, image=1.0 - text)

    def is_normalized(self, tolerance: float = WEIGHT_TOLERANCE) -> bool:
        return math.isclose(self.text + self.image, 1.0, rel_tol=0.0, abs_tol=tolerance)

    def validate(self) -> None:
        """Reject weights that would skew the fused ranking.

        Raises:
            ConfigurationError: If a weight is negative or the pair does not
                sum to 1.0 within tolerance
        """
        if self.text < 0 or self.image < 0:
            raise ConfigurationError(
                f"Fusion weights must be non-negative (text={self.text}, image={self.image})"
            )
        if not self.is_normalized():
            raise ConfigurationError(
                f"Fusion weights must sum to 1.0, got text={self.text} + "
                f"image={self.image} = {self.text + self.image}"
            )

    def to_dict(self) -> Dict[str, float]:
        return {"text": self.text, "image": self.image}


@dataclass(frozen=True)
class RankingConfig:
    """Thresholds, caps and fusion settings for one search invocation.

    Attributes:
        min_similarity: Similarity a result needs to pass on that axis
        min_rerank: Rerank score a result needs to pass on that axis
        max_results: Display cap per search mode
        fetch_limit: Number of candidates requested from the backend
        weights: Hybrid channel weights
        post_fusion: Threshold policy applied after fusion
            ("combined", "per_axis" or "none")
        min_fused_score: Threshold used by the "combined" policy
        prefilter: Apply per-axis thresholds to each channel before fusing
        fusion_key: "uid" merges channels by uid, "modality" never merges
        hybrid_strategy: "client" fuses locally, "server" uses /search/hybrid
    """

    min_similarity: float = 0.2
    min_rerank: float = 0.003
    max_results: Dict[str, int] = field(default_factory=_default_max_results)
    fetch_limit: int = 20
    weights: FusionWeights = field(default_factory=FusionWeights)
    post_fusion: str = "combined"
    min_fused_score: float = 0.0
    prefilter: bool = True
    fusion_key: str = "uid"
    hybrid_strategy: str = "client"

    def max_results_for(self, mode: SearchMode | str) -> int:
        """Display cap for a mode; modes without an entry use the text cap."""
        mode = SearchMode.parse(mode)
        if mode.value in self.max_results:
            return int(self.max_results[mode.value])
        return int(self.max_results.get(SearchMode.TEXT.value, 5))

    def with_overrides(self, **overrides) -> RankingConfig:
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def with_max_results(self, mode: SearchMode | str, max_results: int) -> RankingConfig:
        """Return a copy with the display cap of one mode replaced."""
        caps = dict(self.max_results)
        caps[SearchMode.parse(mode).value] = int(max_results)
        return replace(self, max_results=caps)

    def validate(self, mode: SearchMode | str) -> None:
        """Check the settings a search in ``mode`` depends on.

        Raises:
            ConfigurationError: On a non-positive cap, invalid weights, or an
                unknown policy name
        """
        mode = SearchMode.parse(mode)
        cap = self.max_results_for(mode)
        if cap <= 0:
            raise ConfigurationError(
                f"max_results for {mode.value} search must be positive, got {cap}"
            )
        if self.fetch_limit <= 0:
            raise ConfigurationError(
                f"fetch_limit must be positive, got {self.fetch_limit}"
            )
        if mode is SearchMode.HYBRID:
            self.weights.validate()
            if self.post_fusion not in POST_FUSION_POLICIES:
                raise ConfigurationError(
                    f"Unknown post_fusion policy '{self.post_fusion}'. "
                    f"Expected one of: {', '.join(POST_FUSION_POLICIES)}"
                )
            if self.fusion_key not in FUSION_KEYS:
                raise ConfigurationError(
                    f"Unknown fusion_key '{self.fusion_key}'. "
                    f"Expected one of: {', '.join(FUSION_KEYS)}"
                )
            if self.hybrid_strategy not in HYBRID_STRATEGIES:
                raise ConfigurationError(
                    f"Unknown hybrid strategy '{self.hybrid_strategy}'. "
                    f"Expected one of: {', '.join(HYBRID_STRATEGIES)}"
                )

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> RankingConfig:
        """Build ranking settings from the application configuration.

        Args:
            config: Config instance (uses global config if None)

        Returns:
            RankingConfig instance
        """
        if config is None:
            config = get_config()

        max_results = _default_max_results()
        max_results.update(
            {str(k): int(v) for k, v in (config.get("ranking.max_results") or {}).items()}
        )
        weights = config.get("hybrid.weights") or {}

        return cls(
            min_similarity=float(config.get("ranking.min_similarity", 0.2)),
            min_rerank=float(config.get("ranking.min_rerank", 0.003)),
            max_results=max_results,
            fetch_limit=int(config.get("ranking.fetch_limit", 20)),
            weights=FusionWeights(
                text=float(weights.get("text", 0.7)),
                image=float(weights.get("image", 0.3)),
            ),
            post_fusion=config.get("hybrid.post_fusion", "combined"),
            min_fused_score=float(config.get("hybrid.min_fused_score", 0.0)),
            prefilter=bool(config.get("hybrid.prefilter", True)),
            fusion_key=config.get("hybrid.fusion_key", "uid"),
            hybrid_strategy=config.get("hybrid.strategy", "client"),
        )


__all__ = ["FusionWeights", "RankingConfig"]
