"""
Company Repository Module

Upsert and lookup operations over company profiles and employees.
Functions flush but do not commit; callers own the transaction
(see DatabaseManager.session_scope).
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from applyo.database import CompanyProfile, Employee
from applyo.utils import dedupe, extract_domain, normalize_url

logger = logging.getLogger(__name__)

# Optional company fields accepted by upsert_company
STRING_FIELDS = ('description', 'tech_stack', 'industry', 'headquarters', 'revenue', 'funding')
INTEGER_FIELDS = ('year_founded', 'employee_count_min', 'employee_count_max')

URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?"
    r"([a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+)"
)
COMPANY_AFTER_PREPOSITION = re.compile(r"(?:\bat|\bfrom|@)\s+([^,]+)")
LEADING_VERB = re.compile(r"^(find|get|search|look\s+for|show)\s+", re.IGNORECASE)


def _clean(value: Any) -> Optional[str]:
    """Trim a string; lists are joined with ", "; empty strings become None."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(item).strip() for item in value if item is not None and str(item).strip())
    value = str(value).strip()
    return value or None


def upsert_company(
    session: Session,
    company_name: str,
    website: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Insert a company or update the matching one.

    A company matches when its name is equal ignoring case, or when its
    website equals the given website. On update only provided, non-null
    fields are written.

    Args:
        session: Database session
        company_name: Company name (required)
        website: Company website
        data: Optional profile fields (description, tech_stack, industry,
            year_founded, headquarters, revenue, funding,
            employee_count_min, employee_count_max)

    Returns:
        Company id

    Raises:
        ValueError: If the company name is blank
    """
    if not company_name or not company_name.strip():
        raise ValueError("Company name is required")

    normalized_name = company_name.strip()
    website = _clean(website)
    data = data or {}

    query = session.query(CompanyProfile)
    name_match = func.lower(CompanyProfile.company_name) == normalized_name.lower()
    if website:
        query = query.filter(name_match | (CompanyProfile.website == website))
    else:
        query = query.filter(name_match)
    existing = query.order_by(CompanyProfile.id).first()

    update_data: Dict[str, Any] = {}
    if website:
        update_data['website'] = website
    for field in STRING_FIELDS:
        if field in data:
            update_data[field] = _clean(data[field])
    for field in INTEGER_FIELDS:
        if field in data:
            update_data[field] = data[field]

    if existing:
        changed = False
        for field, value in update_data.items():
            if value is not None:
                setattr(existing, field, value)
                changed = True
        if changed:
            session.flush()
            logger.debug(f"Updated company {existing.id} ({existing.company_name})")
        return existing.id

    company = CompanyProfile(
        company_name=normalized_name,
        website=website,
        **{field: update_data.get(field) for field in STRING_FIELDS + INTEGER_FIELDS},
    )
    session.add(company)
    session.flush()
    logger.info(f"Stored company: {normalized_name} (id={company.id})")
    return company.id


def upsert_employee(
    session: Session,
    company_id: int,
    employee_name: str,
    employee_title: Optional[str] = None,
    email: Optional[str] = None,
) -> int:
    """
    Insert an employee or update the one with the same name at the company.

    Args:
        session: Database session
        company_id: Owning company id
        employee_name: Full name (required)
        employee_title: Job title
        email: Verified email address

    Returns:
        Employee id

    Raises:
        ValueError: If the employee name is blank
    """
    if not employee_name or not employee_name.strip():
        raise ValueError("Employee name is required")

    normalized_name = employee_name.strip()
    title = _clean(employee_title)
    email = _clean(email)

    existing = (
        session.query(Employee)
        .filter(
            func.lower(Employee.employee_name) == normalized_name.lower(),
            Employee.company_id == company_id,
        )
        .order_by(Employee.id)
        .first()
    )

    if existing:
        if title:
            existing.employee_title = title
        if email:
            existing.email = email
            existing.emails = dedupe([email] + list(existing.emails or []))
        session.flush()
        return existing.id

    employee = Employee(
        employee_name=normalized_name,
        employee_title=title,
        email=email,
        emails=[email] if email else [],
        company_id=company_id,
    )
    session.add(employee)
    session.flush()
    logger.info(f"Stored employee: {normalized_name} (company_id={company_id})")
    return employee.id


def _employees_for(session: Session, company_id: int) -> List[Employee]:
    return (
        session.query(Employee)
        .filter(Employee.company_id == company_id)
        .order_by(Employee.id)
        .all()
    )


def _candidate_company_name(query: str) -> str:
    """Pull a company name out of a free-text query."""
    lowered = query.lower()
    match = COMPANY_AFTER_PREPOSITION.search(lowered)
    if match and match.group(1):
        return match.group(1).strip()
    return LEADING_VERB.sub('', lowered).strip()


def find_existing_company_and_employees(
    session: Session,
    query: str,
) -> Optional[Tuple[CompanyProfile, List[Employee]]]:
    """
    Find a stored company (and its employees) referenced by a free-text query.

    Domains found in the query are matched against stored websites first;
    otherwise a company name is extracted and matched exactly (ignoring
    case), then by substring.

    Args:
        session: Database session
        query: Free-text query such as "find engineers at stripe.com"

    Returns:
        (company, employees) or None
    """
    if not query or not query.strip():
        return None

    normalized_query = query.strip()

    url_matches = [m.group(0) for m in URL_PATTERN.finditer(normalized_query)]
    if url_matches:
        companies_with_websites = (
            session.query(CompanyProfile)
            .filter(CompanyProfile.website.isnot(None))
            .order_by(CompanyProfile.id)
            .all()
        )
        for url_match in url_matches:
            query_domain = extract_domain(url_match)
            if not query_domain:
                continue
            for company in companies_with_websites:
                if extract_domain(company.website) == query_domain:
                    return company, _employees_for(session, company.id)

    candidate = _candidate_company_name(normalized_query)
    if not candidate or len(candidate) < 2:
        return None

    company = (
        session.query(CompanyProfile)
        .filter(func.lower(CompanyProfile.company_name) == candidate)
        .order_by(CompanyProfile.id)
        .first()
    )
    if company is None:
        company = (
            session.query(CompanyProfile)
            .filter(func.lower(CompanyProfile.company_name).like(f"%{candidate}%"))
            .order_by(CompanyProfile.id)
            .first()
        )
    if company is None:
        return None

    return company, _employees_for(session, company.id)


def find_people_by_company(session: Session, company_name: str) -> Optional[Dict[str, Any]]:
    """
    Look up already-known people for a company name (case-insensitive).

    Returns:
        {"company", "website", "people": [{"name", "role"}]} or None
    """
    if not company_name or not company_name.strip():
        return None

    rows = (
        session.query(Employee, CompanyProfile)
        .join(CompanyProfile, Employee.company_id == CompanyProfile.id)
        .filter(func.lower(CompanyProfile.company_name) == company_name.strip().lower())
        .order_by(Employee.id)
        .all()
    )
    if not rows:
        return None

    company = rows[0][1]
    people = []
    seen = set()
    for employee, _ in rows:
        key = (employee.employee_name, employee.employee_title or "")
        if key in seen:
            continue
        seen.add(key)
        people.append({"name": employee.employee_name, "role": employee.employee_title or ""})

    return {
        "company": company.company_name,
        "website": normalize_url(company.website),
        "people": people,
    }


def find_emails_by_employee_name(session: Session, employee_name: str) -> Optional[Dict[str, Any]]:
    """
    Look up stored emails for a person by name (case-insensitive).

    Returns:
        Payload shaped like an email-finder response, or None
    """
    if not employee_name or not employee_name.strip():
        return None

    employee = (
        session.query(Employee)
        .filter(func.lower(Employee.employee_name) == employee_name.strip().lower())
        .order_by(Employee.id)
        .first()
    )
    if employee is None:
        return None

    emails = employee.all_emails[:3]
    if not emails:
        return None

    company = employee.company
    return {
        "emails": emails,
        "company_name": company.company_name if company else "",
        "website": normalize_url(company.website) if company else "",
        "employee_name": employee_name.strip(),
        "employee_title": employee.employee_title or "",
        "verification_summary": f"{len(emails)} out of {len(emails)} emails verified",
    }


def save_email_result(
    session: Session,
    employee_name: str,
    company_name: Optional[str],
    website: Optional[str],
    employee_title: Optional[str],
    emails: List[str],
) -> int:
    """
    Persist verified emails for a person.

    An employee with the same name (case-insensitive) gets the new
    addresses merged into its list; otherwise the company is upserted and a
    new employee created.

    Returns:
        Employee id
    """
    name = _clean(employee_name) or "Unknown"
    title = _clean(employee_title)

    existing = (
        session.query(Employee)
        .filter(func.lower(Employee.employee_name) == name.lower())
        .order_by(Employee.id)
        .first()
    )
    if existing:
        merged = dedupe(existing.all_emails + list(emails))
        existing.emails = merged
        if not existing.email and merged:
            existing.email = merged[0]
        if title:
            existing.employee_title = title
        session.flush()
        logger.info(f"Updated record for {name} with {len(merged)} email(s)")
        return existing.id

    company_id = upsert_company(session, _clean(company_name) or "Unknown", website)
    employee = Employee(
        employee_name=name,
        employee_title=title,
        email=emails[0] if emails else None,
        emails=dedupe(emails),
        company_id=company_id,
    )
    session.add(employee)
    session.flush()
    logger.info(f"Created new record for {name} with {len(emails)} email(s)")
    return employee.id


def get_company(session: Session, company_id: int) -> Optional[CompanyProfile]:
    """Get a company by id."""
    return session.get(CompanyProfile, company_id)


def count_companies(session: Session) -> int:
    return session.query(func.count(CompanyProfile.id)).scalar() or 0


def count_employees(session: Session) -> int:
    return session.query(func.count(Employee.id)).scalar() or 0


def list_companies(session: Session, offset: int = 0, limit: int = 50) -> List[CompanyProfile]:
    """Companies ordered by id, one batch."""
    return (
        session.query(CompanyProfile)
        .order_by(CompanyProfile.id)
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_employees_with_company(session: Session) -> int:
    return (
        session.query(func.count(Employee.id))
        .join(CompanyProfile, Employee.company_id == CompanyProfile.id)
        .scalar()
        or 0
    )


def list_employees_with_company(
    session: Session,
    offset: int = 0,
    limit: int = 50,
) -> List[Tuple[Employee, CompanyProfile]]:
    """(employee, company) pairs ordered by employee id, one batch."""
    return (
        session.query(Employee, CompanyProfile)
        .join(CompanyProfile, Employee.company_id == CompanyProfile.id)
        .order_by(Employee.id)
        .offset(offset)
        .limit(limit)
        .all()
    )


def company_to_dict(company: CompanyProfile) -> Dict[str, Any]:
    """Serialize a company for API responses."""
    return {
        "id": company.id,
        "company": company.company_name,
        "website": company.website,
        "description": company.description,
        "techStack": company.tech_stack,
        "industry": company.industry,
        "yearFounded": company.year_founded,
        "headquarters": company.headquarters,
        "revenue": company.revenue,
        "funding": company.funding,
        "employeeCountMin": company.employee_count_min,
        "employeeCountMax": company.employee_count_max,
    }


def employee_to_dict(employee: Employee) -> Dict[str, Any]:
    """Serialize an employee in the person shape the frontend renders."""
    return {
        "id": employee.id,
        "name": employee.employee_name,
        "role": employee.employee_title or "",
        "emails": employee.all_emails,
    }
