"""Read the TOML product declaration and write the starter file."""

from __future__ import annotations

import tomllib
from logging import getLogger
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pricetag.domain.errors import ConfigUnreadableError
from pricetag.domain.model import Declaration, ProductDeclaration, ProductType

log = getLogger(__name__)

DEFAULT_CONFIG_TEMPLATE = """\
# Products declared here are created or updated on Roblox by `pricetag sync`.
universe_id = 123456789

[products.example_product]
type = "dev_product"
name = "Example Product"
price = 100
description = "An example developer product"
# image = "assets/example_product.png"

[products.example_gamepass]
type = "gamepass"
name = "Example Gamepass"
price = 500
description = "An example gamepass"
# product_id = 1234  # adopt an entity that already exists remotely
"""


class DeclaredProduct(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: ProductType
    name: str = Field(min_length=1)
    price: int = Field(ge=0)
    description: str | None = None
    image: str | None = None
    product_id: int | None = Field(default=None, gt=0)


class DeclarationFile(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    universe_id: int = Field(gt=0)
    products: dict[str, DeclaredProduct] = Field(default_factory=dict)


def load_declaration(path: str | Path) -> Declaration:
    """Load and validate a declaration file.

    Image paths are resolved relative to the directory holding the file.

    Raises:
        ConfigUnreadableError: If the file is missing, is not valid TOML, does
            not match the expected shape, or declares two products of the same
            type with the same name.
    """
    config_path = Path(path)
    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as exc:
        raise ConfigUnreadableError(f"Config file not found: {config_path}") from exc
    except OSError as exc:
        raise ConfigUnreadableError(f"Failed to read config file {config_path}: {exc}") from exc

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigUnreadableError(f"Failed to parse config file {config_path}: {exc}") from exc

    try:
        parsed = DeclarationFile.model_validate(data)
    except ValidationError as exc:
        raise ConfigUnreadableError(f"Invalid config file {config_path}: {exc}") from exc

    _reject_duplicate_names(parsed)

    base_dir = config_path.parent
    products = {
        key: ProductDeclaration(
            product_type=product.type,
            name=product.name,
            price=product.price,
            description=product.description,
            image=_resolve_image(base_dir, product.image),
            product_id=product.product_id,
        )
        for key, product in parsed.products.items()
    }
    log.debug("Loaded %d product(s) from %s", len(products), config_path)
    return Declaration(universe_id=parsed.universe_id, products=products)


def write_default_config(path: str | Path, *, force: bool = False) -> Path:
    """Write the starter declaration, refusing to clobber an existing file.

    Raises:
        FileExistsError: If ``path`` exists and ``force`` is false.
    """
    config_path = Path(path)
    if config_path.exists() and not force:
        raise FileExistsError(f"Config file already exists: {config_path}")
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    return config_path


def _reject_duplicate_names(parsed: DeclarationFile) -> None:
    seen: dict[tuple[ProductType, str], str] = {}
    for key in sorted(parsed.products):
        product = parsed.products[key]
        existing = seen.get((product.type, product.name))
        if existing is not None:
            raise ConfigUnreadableError(
                f'Duplicate {product.type.label} name "{product.name}" '
                f'found in keys "{existing}" and "{key}"'
            )
        seen[(product.type, product.name)] = key


def _resolve_image(base_dir: Path, image: str | None) -> Path | None:
    if image is None:
        return None
    image_path = Path(image).expanduser()
    return image_path if image_path.is_absolute() else base_dir / image_path


__all__ = [
    "DEFAULT_CONFIG_TEMPLATE",
    "DeclarationFile",
    "DeclaredProduct",
    "load_declaration",
    "write_default_config",
]
