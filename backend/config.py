from pathlib import Path

from pydantic_settings import BaseSettings

from models.schemas.scoring_config import NormalizerConfig, ScoringConfig

DEFAULT_TAXONOMY_PATH = Path(__file__).resolve().parent / "services" / "data" / "taxonomy.yaml"


class Settings(BaseSettings):
    taxonomy_path: str = str(DEFAULT_TAXONOMY_PATH)

    # Normalizer: composite similarity floor and minimum separation of the top fuzzy candidate
    fuzzy_threshold: float = 0.82
    fuzzy_margin: float = 0.05
    fuzzy_max_candidates: int = 5
    fuzzy_token_weight: float = 0.5  # token_set_ratio share; the rest is Levenshtein
    disambiguated_confidence: float = 0.9

    # Scorer factor weights (must sum to 1)
    coverage_weight: float = 0.6
    experience_weight: float = 0.3
    recency_weight: float = 0.1

    desired_share: float = 0.25  # share of the coverage factor earned by desired skills
    implied_credit: float = 0.5  # credit for a skill implied by a child skill (spring-boot -> java)
    cap_on_missing_required: bool = True
    recency_window_years: float = 5.0
    recency_half_life_years: float = 2.0

    scorer_mode: str = "rules"  # "rules" | "model"
    scorer_model_dir: str = "models/scorer"  # directory holding the trained scorer artifact

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}

    def normalizer_config(self) -> NormalizerConfig:
        return NormalizerConfig(
            fuzzy_threshold=self.fuzzy_threshold,
            fuzzy_margin=self.fuzzy_margin,
            max_candidates=self.fuzzy_max_candidates,
            disambiguated_confidence=self.disambiguated_confidence,
        )

    def scoring_config(self) -> ScoringConfig:
        return ScoringConfig(
            coverage_weight=self.coverage_weight,
            experience_weight=self.experience_weight,
            recency_weight=self.recency_weight,
            desired_share=self.desired_share,
            implied_credit=self.implied_credit,
            cap_on_missing_required=self.cap_on_missing_required,
            recency_window_years=self.recency_window_years,
            recency_half_life_years=self.recency_half_life_years,
        )


settings = Settings()
