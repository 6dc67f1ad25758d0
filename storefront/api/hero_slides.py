"""
Homepage hero carousel slides.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.auth import require_admin
from storefront.database import get_db
from storefront.errors import NotFoundError
from storefront.logger import get_logger
from storefront.models import HeroSlide
from storefront.schemas import HeroSlideCreate, HeroSlideOut, HeroSlideUpdate, dump

logger = get_logger("api.hero_slides")

router = APIRouter(prefix="/api/hero-slides", tags=["hero-slides"])


def _get_or_404(db: Session, slide_id: int) -> HeroSlide:
    slide = db.get(HeroSlide, slide_id)
    if slide is None:
        raise NotFoundError("Slide not found")
    return slide


@router.get("")
def list_slides(db: Session = Depends(get_db)):
    slides = db.query(HeroSlide).order_by(HeroSlide.order.asc(), HeroSlide.created_at.asc(), HeroSlide.id.asc()).all()
    return {"slides": [dump(HeroSlideOut.model_validate(s)) for s in slides]}


@router.get("/{slide_id}")
def get_slide(slide_id: int, db: Session = Depends(get_db)):
    return dump(HeroSlideOut.model_validate(_get_or_404(db, slide_id)))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_slide(request: HeroSlideCreate, db: Session = Depends(get_db)):
    slide = HeroSlide(**request.model_dump())
    db.add(slide)
    db.commit()
    logger.info(f"Created hero slide {slide.id}")
    return dump(HeroSlideOut.model_validate(slide))


@router.put("/{slide_id}", dependencies=[Depends(require_admin)])
def update_slide(slide_id: int, request: HeroSlideUpdate, db: Session = Depends(get_db)):
    slide = _get_or_404(db, slide_id)
    for name in request.model_fields_set:
        value = getattr(request, name)
        if value is None and name in ("title", "order", "is_active"):
            continue
        setattr(slide, name, value)
    db.commit()
    return dump(HeroSlideOut.model_validate(slide))


@router.delete("/{slide_id}", dependencies=[Depends(require_admin)])
def delete_slide(slide_id: int, db: Session = Depends(get_db)):
    slide = _get_or_404(db, slide_id)
    db.delete(slide)
    db.commit()
    logger.info(f"Deleted hero slide {slide_id}")
    return {"message": "Slide deleted"}
