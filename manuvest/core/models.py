"""ManuVest domain records.

Plain dataclasses shared by every module. Records are serialized with
``to_dict()`` (enum members become their values) and rebuilt with
``from_dict()``, which ignores unknown keys and rebuilds nested records.
"""

from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class WorkflowStatus(str, Enum):
    """Status shared by budget plans and purchase requests."""
    DRAFT = 'Draft'
    SUBMITTED = 'Submitted'
    APPROVED = 'Approved'
    ON_PROCESS = 'On Process'
    REJECTED = 'Rejected'
    CLOSED = 'Closed'


class UserRole(str, Enum):
    ADMIN = 'Admin'
    USER = 'User'
    APPROVER = 'Approver'
    FINANCE = 'Finance'


class ProjectStatus(str, Enum):
    DRAFT = 'Draft'
    ACTIVE = 'Active'
    HOLD = 'Hold'
    COMPLETED = 'Completed'


class InvestmentType(str, Enum):
    CAPEX = 'Capex'
    OPEX = 'Opex'


class ProcessType(str, Enum):
    PREPARATION = 'Preparation'
    FINAL_ASSY = 'Final Assy'


MASTER_DATA_CATEGORIES = (
    'departments', 'categories', 'ios', 'costCenters', 'projects',
    'plants', 'suppliers', 'items', 'currencies',
)


def to_jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


class _Record:
    # field name -> record class, for nested records and lists of records
    _nested = {}
    # field name -> Enum class
    _enums = {}

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key not in known:
                continue
            if value is not None and key in cls._nested:
                sub = cls._nested[key]
                if isinstance(value, list):
                    value = [v if isinstance(v, sub) else sub.from_dict(v) for v in value]
                elif not isinstance(value, sub):
                    value = sub.from_dict(value)
            elif value is not None and key in cls._enums:
                value = cls._enums[key](value)
            kwargs[key] = value
        return cls(**kwargs)


# ============== Master Data & Users ==============

@dataclass
class MasterOption(_Record):
    """Lookup record (department, category, IO number, supplier, ...)."""
    id: str
    code: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    uom: Optional[str] = None
    is_active: Optional[bool] = None


# Returned for references whose master record was deleted
UNKNOWN_OPTION = MasterOption(id='', code='N/A', name='Unknown')


@dataclass
class User(_Record):
    id: str
    username: str
    name: str
    email: str = ''
    role: UserRole = UserRole.USER
    department: str = ''
    password_hash: Optional[str] = None

    _enums = {'role': UserRole}

    def to_public_dict(self) -> Dict[str, Any]:
        data = self.to_dict()
        data.pop('password_hash', None)
        return data


# ============== Projects ==============

@dataclass
class ProjectSchedule(_Record):
    die_go: Optional[str] = None
    t0: Optional[str] = None
    pp1: Optional[str] = None
    pp2: Optional[str] = None
    pp3: Optional[str] = None
    mass_pro: Optional[str] = None


@dataclass
class Milestone(_Record):
    id: str
    name: str
    date: str
    is_completed: bool = False


@dataclass
class Project(_Record):
    id: str
    code: str
    name: str
    customer: str = ''
    model: str = ''
    description: str = ''
    year: str = ''
    project_manager: Optional[str] = None
    budget_allocation: Optional[float] = None
    status: ProjectStatus = ProjectStatus.DRAFT
    schedule: ProjectSchedule = field(default_factory=ProjectSchedule)
    custom_milestones: List[Milestone] = field(default_factory=list)

    _nested = {'schedule': ProjectSchedule, 'custom_milestones': Milestone}
    _enums = {'status': ProjectStatus}


def to_master_option(project: Project) -> MasterOption:
    """Project as it appears in the ``projects`` master-data list."""
    return MasterOption(
        id=project.id,
        code=project.code,
        name=project.name,
        description=project.description,
    )


# ============== Budget Plans ==============

@dataclass(frozen=True)
class TransferLog(_Record):
    """Provenance entry appended when an item moves between plans."""
    date: str
    from_plan_id: str
    from_io_no: str
    to_plan_id: str
    to_io_no: str
    reason: str
    user: str


@dataclass
class BudgetPlanItem(_Record):
    id: str
    internal_no: str
    machine_name: str
    process: ProcessType = ProcessType.PREPARATION
    brand: Optional[str] = None
    qty: float = 1
    uom: str = 'Unit'
    currency: str = 'IDR'
    estimation_cost_unit: float = 0
    estimation_cost_total: float = 0
    fiscal_year: Optional[int] = None
    description: Optional[str] = None
    evaluation_obstacle: Optional[str] = None
    evaluation_difference_reason: Optional[str] = None
    transfers: List[TransferLog] = field(default_factory=list)

    _nested = {'transfers': TransferLog}
    _enums = {'process': ProcessType}


@dataclass
class BudgetPlanHeader(_Record):
    id: str
    plan_number: str = ''
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    department_id: str = ''
    business_category_id: str = ''
    project_id: str = ''
    io_no: str = ''
    cost_center: str = ''
    plant_id: str = ''
    investment_type: InvestmentType = InvestmentType.CAPEX
    status: WorkflowStatus = WorkflowStatus.DRAFT
    items: List[BudgetPlanItem] = field(default_factory=list)
    created_at: str = ''
    customer_id: Optional[str] = None
    pic: Optional[str] = None
    description: Optional[str] = None

    _nested = {'items': BudgetPlanItem}
    _enums = {'investment_type': InvestmentType, 'status': WorkflowStatus}

    @property
    def total_cost(self) -> float:
        return sum(i.estimation_cost_total for i in self.items)


# ============== Purchase Requests ==============

@dataclass
class PRHistoryLog(_Record):
    date: str
    user: str
    action: str
    notes: str = ''


@dataclass
class PRItem(_Record):
    id: str
    description: str
    qty: float = 1
    uom: str = 'Unit'
    est_cost_unit: float = 0
    est_cost_total: float = 0
    currency: str = 'IDR'
    item_id: Optional[str] = None
    budget_plan_item_id: Optional[str] = None
    supplier_id: Optional[str] = None
    remarks: Optional[str] = None


@dataclass
class PurchaseRequest(_Record):
    id: str
    pr_number: str = ''
    pr_date: str = ''
    department_id: str = ''
    business_category_id: str = ''
    io_no: str = ''
    cost_center: str = ''
    plant_id: str = ''
    asset_no: Optional[str] = None
    status: WorkflowStatus = WorkflowStatus.DRAFT
    items: List[PRItem] = field(default_factory=list)
    history: List[PRHistoryLog] = field(default_factory=list)
    pic: Optional[str] = None
    investment_type: Optional[InvestmentType] = None
    storage_loc_id: Optional[str] = None
    auc_no: Optional[str] = None
    attachments: List[str] = field(default_factory=list)

    _nested = {'items': PRItem, 'history': PRHistoryLog}
    _enums = {'status': WorkflowStatus, 'investment_type': InvestmentType}

    @property
    def total_cost(self) -> float:
        return sum(i.est_cost_total for i in self.items)
