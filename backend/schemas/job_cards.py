from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from models.job_cards import JobCardStatus
from schemas.pagination import PaginationMeta


class JobTaskBase(BaseModel):
    module_name: Optional[str] = None
    task_type: Optional[str] = None
    description: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class JobTaskCreate(JobTaskBase):
    pass


class JobTaskUpdate(BaseModel):
    module_name: Optional[str] = None
    task_type: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class JobTask(JobTaskBase):
    id: int
    job_card_id: int

    class Config:
        from_attributes = True


class JobExpenseBase(BaseModel):
    category: str
    description: Optional[str] = None
    amount: Decimal = Field(gt=0)
    has_receipt: bool = False
    receipt_url: Optional[str] = None


class JobExpenseCreate(JobExpenseBase):
    pass


class JobExpenseUpdate(BaseModel):
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    has_receipt: Optional[bool] = None
    receipt_url: Optional[str] = None


class JobExpense(JobExpenseBase):
    id: int
    job_card_id: int

    class Config:
        from_attributes = True


class JobCardApprovalBase(BaseModel):
    role: str
    approver_name: Optional[str] = None
    approver_title: Optional[str] = None
    comment: Optional[str] = None
    signed_at: Optional[datetime] = None
    signature_type: Optional[str] = None


class JobCardApprovalCreate(JobCardApprovalBase):
    pass


class JobCardApprovalUpdate(BaseModel):
    role: Optional[str] = None
    approver_name: Optional[str] = None
    approver_title: Optional[str] = None
    comment: Optional[str] = None
    signed_at: Optional[datetime] = None
    signature_type: Optional[str] = None


class JobCardApproval(JobCardApprovalBase):
    id: int
    job_card_id: int

    class Config:
        from_attributes = True


class JobCardBase(BaseModel):
    client_id: int
    visit_date: Optional[datetime] = None
    location: Optional[str] = None
    contact_person: Optional[str] = None
    purpose: Optional[str] = None
    work_summary: Optional[str] = None
    findings: Optional[str] = None
    recommendations: Optional[str] = None
    support_staff_id: Optional[int] = None


class JobCardCreate(JobCardBase):
    status: JobCardStatus = JobCardStatus.DRAFT
    tasks: List[JobTaskCreate] = []
    expenses: List[JobExpenseCreate] = []


class JobCardUpdate(BaseModel):
    client_id: Optional[int] = None
    visit_date: Optional[datetime] = None
    location: Optional[str] = None
    contact_person: Optional[str] = None
    purpose: Optional[str] = None
    work_summary: Optional[str] = None
    findings: Optional[str] = None
    recommendations: Optional[str] = None
    support_staff_id: Optional[int] = None
    status: Optional[JobCardStatus] = None


class JobCard(JobCardBase):
    id: int
    job_number: str
    visit_date: datetime
    status: JobCardStatus
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    tasks: List[JobTask] = []
    expenses: List[JobExpense] = []
    approvals: List[JobCardApproval] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobCardList(BaseModel):
    data: List[JobCard]
    pagination: PaginationMeta
