import logging
import uuid
from typing import Optional

from motoverse.core.config import MAX_UPLOAD_BYTES
from motoverse.core.exceptions import UploadTooLarge
from motoverse.db.gateway import RemoteGateway
from motoverse.models.schemas import Product, ProductIn, UploadResult
from motoverse.services.catalog import CatalogStore

logger = logging.getLogger(__name__)


def save_product(
    payload: ProductIn,
    gateway: RemoteGateway,
    catalog: CatalogStore,
    product_id: Optional[str] = None,
) -> Optional[Product]:
    """Create (no id) or update a product. The catalog only changes once the backend confirms."""
    product = Product(id=product_id or str(uuid.uuid4()), **payload.model_dump())
    if product_id:
        saved = gateway.update_product(product)
    else:
        saved = gateway.add_product(product)
    if saved is None:
        return None
    catalog.upsert(saved)
    logger.info(f"Product {saved.id} saved ({saved.name})")
    return saved


def delete_product(product_id: str, gateway: RemoteGateway, catalog: CatalogStore) -> bool:
    if not gateway.delete_product(product_id):
        return False
    catalog.discard(product_id)
    return True


def upload_image(
    filename: str,
    content: bytes,
    content_type: str,
    gateway: RemoteGateway,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> UploadResult:
    if len(content) > max_bytes:
        raise UploadTooLarge(f"File is too large. Please choose an image under {max_bytes // (1024 * 1024)}MB.")
    return gateway.upload_image(filename, content, content_type)
