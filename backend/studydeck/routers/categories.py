import aiosqlite
from fastapi import APIRouter, Depends

from studydeck.db.sqlite import create_category, get_db, list_categories
from studydeck.models.category import Category, CategoryCreate

router = APIRouter()


@router.get("", response_model=list[Category])
async def list_all(db: aiosqlite.Connection = Depends(get_db)) -> list[Category]:
    return await list_categories(db)


@router.post("", response_model=Category)
async def create(body: CategoryCreate, db: aiosqlite.Connection = Depends(get_db)) -> Category:
    return await create_category(db, body)
