from typing import List
from sqlalchemy.orm import Session
from crud.audit_log import record_audit
from models.employees import Employee, Role, DIRECTOR
from schemas.employees import EmployeeCreate, EmployeeUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError, ValidationError


def get_role_by_name(db: Session, name: str):
    return db.query(Role).filter(Role.name == name).first()


def get_role(db: Session, role_id: int) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise NotFoundError("Role not found")
    return role


def list_roles(db: Session) -> List[Role]:
    return db.query(Role).order_by(Role.name).all()


def ensure_default_roles(db: Session) -> List[Role]:
    roles = []
    for name, description in (("DIRECTOR", "Approval and financial authority"), ("STAFF", "Field and operational staff")):
        role = get_role_by_name(db, name)
        if role is None:
            role = Role(name=name, description=description)
            db.add(role)
            db.flush()
        roles.append(role)
    db.commit()
    return roles


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


def list_employees(db: Session, skip: int = 0, limit: int = 100) -> List[Employee]:
    return db.query(Employee).order_by(Employee.first_name, Employee.last_name).offset(skip).limit(limit).all()


def get_active_directors_with_phone(db: Session) -> List[Employee]:
    return db.query(Employee).join(Role, Employee.role_id == Role.id).filter(
        Employee.status == "active",
        Role.name == DIRECTOR,
        Employee.phone.isnot(None),
    ).order_by(Employee.id).all()


def create_employee(db: Session, data: EmployeeCreate, performed_by: str = None) -> Employee:
    if db.query(Employee).filter(Employee.email == data.email).first():
        raise ValidationError(f"An employee with email {data.email} already exists")
    if data.role_id is not None and db.query(Role).filter(Role.id == data.role_id).first() is None:
        raise NotFoundError("Role not found")

    employee = Employee(**data.model_dump(), status="active", created_by=performed_by)
    db.add(employee)
    db.flush()
    record_audit(db, "CREATE", "Employee", employee.id, performed_by, new_values=sqlalchemy_to_dict(employee))
    db.commit()
    db.refresh(employee)
    return employee


def update_employee(db: Session, employee_id: int, data: EmployeeUpdate, performed_by: str = None) -> Employee:
    employee = get_employee(db, employee_id)
    old_values = sqlalchemy_to_dict(employee)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(employee, key, value)
    employee.updated_by = performed_by
    db.flush()
    record_audit(db, "UPDATE", "Employee", employee.id, performed_by, old_values, sqlalchemy_to_dict(employee))
    db.commit()
    db.refresh(employee)
    return employee


def terminate_employee(db: Session, employee_id: int, performed_by: str = None) -> Employee:
    """Employees are never hard-deleted; their status becomes 'terminated'."""
    employee = get_employee(db, employee_id)
    old_values = sqlalchemy_to_dict(employee)
    employee.status = "terminated"
    employee.updated_by = performed_by
    db.flush()
    record_audit(db, "DELETE", "Employee", employee.id, performed_by, old_values, sqlalchemy_to_dict(employee))
    db.commit()
    db.refresh(employee)
    return employee
