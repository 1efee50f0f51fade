from enum import Enum
from typing import Any, List, Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from greenthumb.config import MAX_SOURCES_SHOWN, PRICE_FALLBACK_TEXT


class ContractModel(BaseModel):
    """Accepts both the camelCase wire keys and the Python attribute names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================#
# Identification
# ============================================================================#
class CareInstructions(ContractModel):
    water: str
    light: str
    soil: str
    temperature: str


class PlantInfo(ContractModel):
    name: str
    scientific_name: str = Field(alias="scientificName")
    description: str
    care: CareInstructions
    fun_fact: str = Field(alias="funFact")


class SavedPlant(ContractModel):
    """A PlantInfo kept in the garden, plus its storage identity."""

    id: str
    plant: PlantInfo
    image_url: str = Field(alias="imageUrl")  # self-contained data URI
    date_added: int = Field(alias="dateAdded")  # ms since epoch

    @model_validator(mode="before")
    @classmethod
    def _nest_flat_record(cls, data: Any) -> Any:
        # Stored records keep the plant fields at the top level
        if isinstance(data, dict) and "plant" not in data:
            data = dict(data)
            meta = {
                key: data.pop(key)
                for key in ("id", "imageUrl", "image_url", "dateAdded", "date_added")
                if key in data
            }
            return {**meta, "plant": data}
        return data

    @property
    def name(self) -> str:
        return self.plant.name

    @property
    def scientific_name(self) -> str:
        return self.plant.scientific_name

    def to_record(self) -> dict:
        """Flat record shape used by the `plants` collection."""
        record = self.plant.to_wire()
        record.update({"id": self.id, "imageUrl": self.image_url, "dateAdded": self.date_added})
        return record


# ============================================================================#
# Diagnosis
# ============================================================================#
class HealthStatus(str, Enum):
    HEALTHY = "Healthy"
    SICK = "Sick"
    UNKNOWN = "Unknown"


class DiagnosisResult(ContractModel):
    health_status: HealthStatus = Field(alias="healthStatus")
    diagnosis: str
    symptoms: List[str]
    treatment: List[str]
    prevention: str

    @property
    def needs_treatment(self) -> bool:
        return self.health_status != HealthStatus.HEALTHY


# ============================================================================#
# Product search / grounding
# ============================================================================#
class GroundingChunk(ContractModel):
    title: Optional[str] = None
    uri: Optional[str] = None


def _distinct(chunks: List[GroundingChunk], key) -> List[GroundingChunk]:
    # Display only; skips chunks whose key is empty or already seen
    seen = set()
    result = []
    for chunk in chunks:
        value = key(chunk)
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(chunk)
    return result


class GroundingMetadata(ContractModel):
    chunks: List[GroundingChunk] = Field(default_factory=list, alias="groundingChunks")

    def sources(self, limit: int = MAX_SOURCES_SHOWN) -> List[GroundingChunk]:
        """First distinct citations that can be linked to."""
        return _distinct(self.chunks, key=lambda chunk: chunk.uri)[:limit]


class ProductRecommendation(ContractModel):
    name: str
    price: str = ""
    description: str = ""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    product_url: Optional[str] = Field(None, alias="productUrl")

    @field_validator("image_url", "product_url", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("price", mode="before")
    @classmethod
    def _price_as_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def display_price(self) -> str:
        lowered = self.price.lower()
        if not self.price.strip() or "not found" in lowered or "snippets" in lowered:
            return PRICE_FALLBACK_TEXT
        return self.price


class SearchResult(ContractModel):
    products: List[ProductRecommendation] = Field(default_factory=list)
    raw_text: str = Field("", alias="rawText")
    grounding_chunks: List[GroundingChunk] = Field(default_factory=list, alias="groundingChunks")

    def product_link(self, index: int) -> Optional[str]:
        """Purchase link for a product, falling back to the citation at the same position."""
        if index < 0 or index >= len(self.products):
            return None
        product = self.products[index]
        if product.product_url:
            return product.product_url
        if index < len(self.grounding_chunks):
            return self.grounding_chunks[index].uri
        return None

    def source_titles(self, limit: int = MAX_SOURCES_SHOWN) -> List[str]:
        distinct = _distinct(self.grounding_chunks, key=lambda chunk: chunk.title)
        return [chunk.title for chunk in distinct][:limit]


# ============================================================================#
# Chat
# ============================================================================#
class ChatMessage(ContractModel):
    role: Literal["user", "model"]
    text: str
    timestamp: int  # ms since epoch
    grounding_metadata: Optional[GroundingMetadata] = Field(None, alias="groundingMetadata")


class ChatReply(ContractModel):
    text: str
    grounding_metadata: Optional[GroundingMetadata] = Field(None, alias="groundingMetadata")


class ImageSegment(NamedTuple):
    """Inline `![alt](url)` reference found in a chat reply."""

    alt: str
    url: str
