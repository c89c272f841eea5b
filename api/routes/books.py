# api/routes/books.py

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_book_service
from api.schemas.book import (
    Book, BookCreate, BookUpdate, BookList, ExternalBookList, ExternalBookDetail
)
from core.services.book_service import BookService

router = APIRouter(prefix="/books", tags=["books"])


@router.get("", response_model=BookList)
async def get_books(
    search: Optional[str] = Query(None, description="Search title, author and description"),
    genre: Optional[str] = Query(None, description="Exact genre tag"),
    author: Optional[str] = Query(None, description="Author name contains"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    service: BookService = Depends(get_book_service)
):
    """Get a paginated list of books from the local catalog."""
    return await service.get_all_books(search=search, genre=genre, author=author, page=page, limit=limit)


@router.get("/search", response_model=ExternalBookList)
async def search_books(
    search: Optional[str] = Query(None, description="Free text query"),
    genre: Optional[str] = Query(None, description="Open Library subject"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    service: BookService = Depends(get_book_service)
):
    """
    Search Open Library.

    Searches by text when ``search`` is given, by subject when ``genre`` is
    given, and returns trending books otherwise.
    """
    return await service.search_books_from_api(search=search, genre=genre, page=page, limit=limit)


@router.get("/details/{work_id}", response_model=ExternalBookDetail)
async def get_book_details(work_id: str, service: BookService = Depends(get_book_service)):
    """Get full Open Library details for a work without adding it to the catalog."""
    return await service.get_book_details_from_api(work_id)


@router.get("/{book_id}", response_model=Book)
async def get_book(book_id: str, service: BookService = Depends(get_book_service)):
    return await service.get_book(book_id)


@router.post("", response_model=Book, status_code=status.HTTP_201_CREATED)
async def create_book(book: BookCreate, service: BookService = Depends(get_book_service)):
    return await service.create_book(book.model_dump())


@router.put("/{book_id}", response_model=Book)
async def update_book(book_id: str, book: BookUpdate, service: BookService = Depends(get_book_service)):
    return await service.update_book(book_id, book.model_dump(exclude_unset=True))


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)):
    if not await service.delete_book(book_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
