from models.audit_log import SystemLog
from models.employees import Role, Employee
from models.clients import Client, ClientIntegration
from models.products import Product, ProductCategory
from models.sales import Sale, SaleItem, SaleStatus
from models.sale_installments import SaleInstallment, InstallmentStatus
from models.expenses import Expense, ExpenseCategory, ExpenseStatus
from models.job_cards import JobCard, JobCardStatus, JobTask, JobExpense, JobCardApproval

__all__ = ['SystemLog', 'Role', 'Employee', 'Client', 'ClientIntegration', 'Product', 'ProductCategory', 'Sale', 'SaleItem', 'SaleStatus', 'SaleInstallment', 'InstallmentStatus', 'Expense', 'ExpenseCategory', 'ExpenseStatus', 'JobCard', 'JobCardStatus', 'JobTask', 'JobExpense', 'JobCardApproval',]
