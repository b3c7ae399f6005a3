from dataclasses import dataclass, field

from src.refindex.domain.models import PackageRequest

TIDYMODELS_PACKAGES: tuple[str, ...] = (
    "agua", "applicable", "baguette", "brulee", "broom", "butcher",
    "censored", "corrr", "dials", "discrim", "embed", "finetune",
    "hardhat", "infer", "modeldata", "modeldb",
    "modelenv", "multilevelmod", "parsnip", "plsmod", "poissonreg",
    "probably", "recipes", "rsample", "rules", "shinymodels", "spatialsample",
    "stacks", "textrecipes", "themis", "tidyclust", "tidymodels",
    "tidyposterior", "tidypredict", "tune", "usemodels", "workflows",
    "workflowsets", "yardstick",
)


@dataclass(frozen=True)
class CatalogPreset:
    name: str
    pattern: str | None = None
    packages: tuple[PackageRequest, ...] = field(default_factory=tuple)


PRESETS: dict[str, CatalogPreset] = {
    "tidymodels": CatalogPreset(
        name="tidymodels",
        packages=tuple(
            PackageRequest(package=name, base_url=f"https://{name}.tidymodels.org/")
            for name in TIDYMODELS_PACKAGES
        ),
    ),
    "broom": CatalogPreset(name="broom", pattern=r"(^tidy\.)|(^glance\.)|(^augment\.)"),
    "recipes": CatalogPreset(name="recipes", pattern=r"^step_"),
}


def get_preset(name: str) -> CatalogPreset:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown catalog preset: {name}. Choose from {', '.join(sorted(PRESETS))}") from None
