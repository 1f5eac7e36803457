"""Company lookup endpoint -- answer from the store without running agents."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from applyo.api.deps import get_db
from applyo.companies import company_to_dict, employee_to_dict, find_existing_company_and_employees
from applyo.utils import favicon_url

router = APIRouter(prefix="/api/companies", tags=["companies"])


@router.get("/lookup")
def lookup(q: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """Find a stored company and its people from a free-text query."""
    found = find_existing_company_and_employees(db, q)
    if found is None:
        raise HTTPException(status_code=404, detail="Company not found")

    company, employees = found
    return {
        **company_to_dict(company),
        "people": [employee_to_dict(e) for e in employees],
        "favicon": favicon_url(company.website),
    }
