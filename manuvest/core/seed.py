"""Demo data loaded into a fresh DomainStore.

Three users (admin / user / approver, password ``123``), the master-data
lookups, three detailed projects, two approved budget plans and two purchase
requests linked to their budget items.
"""

import logging
from functools import lru_cache

from werkzeug.security import generate_password_hash

from .models import (
    BudgetPlanHeader, MasterOption, Project, PurchaseRequest, User,
)
from .store import DomainStore

logger = logging.getLogger('manuvest.core.seed')

DEMO_PASSWORD = '123'

MOCK_USERS = [
    {'id': 'u1', 'username': 'admin', 'name': 'Admin Administrator',
     'email': 'admin@manuvest.com', 'role': 'Admin', 'department': 'IT'},
    {'id': 'u2', 'username': 'user', 'name': 'John Engineer',
     'email': 'john@manuvest.com', 'role': 'User', 'department': 'Engineering'},
    {'id': 'u3', 'username': 'approver', 'name': 'Sarah Manager',
     'email': 'sarah@manuvest.com', 'role': 'Approver', 'department': 'Management'},
]

MOCK_MASTER_DATA = {
    'departments': [
        {'id': 'dept1', 'code': 'ENG', 'name': 'Engineering'},
        {'id': 'dept2', 'code': 'PROD', 'name': 'Production'},
        {'id': 'dept3', 'code': 'QA', 'name': 'Quality Assurance'},
        {'id': 'dept4', 'code': 'LOG', 'name': 'Logistics'},
    ],
    'categories': [
        {'id': 'cat1', 'code': 'WH', 'name': 'Wiring Harness'},
        {'id': 'cat2', 'code': 'AEP', 'name': 'Automotive Electronics Part'},
        {'id': 'cat3', 'code': 'PES', 'name': 'Power & Energy Solution'},
        {'id': 'cat4', 'code': 'AMR', 'name': 'AMR System'},
    ],
    'ios': [
        {'id': 'io1', 'code': 'IO-1001', 'name': 'New Machine Inv'},
        {'id': 'io2', 'code': 'IO-1002', 'name': 'Facility Upgrade'},
        {'id': 'io3', 'code': 'IO-2001', 'name': 'R&D Tools'},
    ],
    'costCenters': [
        {'id': 'cc1', 'code': 'CC-501', 'name': 'Plant A - Assy'},
        {'id': 'cc2', 'code': 'CC-502', 'name': 'Plant B - Molding'},
    ],
    'plants': [
        {'id': 'pl1', 'code': 'P1', 'name': 'Karawang Plant 1'},
        {'id': 'pl2', 'code': 'P2', 'name': 'Cikarang Plant 2'},
    ],
    'suppliers': [
        {'id': 'sup1', 'code': 'V001', 'name': 'Global Tech Machinery'},
        {'id': 'sup2', 'code': 'V002', 'name': 'Local Parts Indo'},
    ],
    'currencies': [
        {'id': 'curr1', 'code': 'IDR', 'name': 'Indonesian Rupiah'},
        {'id': 'curr2', 'code': 'USD', 'name': 'US Dollar'},
        {'id': 'curr3', 'code': 'JPY', 'name': 'Japanese Yen'},
        {'id': 'curr4', 'code': 'EUR', 'name': 'Euro'},
    ],
    'items': [
        {'id': 'mi1', 'code': 'ITM-001', 'name': 'Copper Wire 5mm',
         'description': 'Standard copper wire for harness', 'uom': 'Roll', 'is_active': True},
        {'id': 'mi2', 'code': 'ITM-002', 'name': 'PCB Board Type A',
         'description': 'Main control board', 'uom': 'Pcs', 'is_active': True},
        {'id': 'mi3', 'code': 'ITM-003', 'name': 'Hydraulic Oil',
         'description': 'Lubricant for press machine', 'uom': 'Liter', 'is_active': True},
        {'id': 'mi4', 'code': 'ITM-004', 'name': 'Safety Gloves L',
         'description': 'Standard safety equipment', 'uom': 'Pair', 'is_active': False},
    ],
}

MOCK_PROJECTS = [
    {
        'id': 'prj1', 'code': 'P-2024-01', 'customer': 'Tesla',
        'name': 'Model X Harness Expansion', 'model': 'Model X 2024',
        'description': 'Expansion of rear harness assembly line.', 'year': '2024',
        'project_manager': 'Robert Downey', 'budget_allocation': 5_000_000_000,
        'status': 'Active',
        'schedule': {'die_go': '2024-01-10', 't0': '2024-02-15', 'pp1': '2024-03-20',
                     'pp2': '2024-04-15', 'pp3': '2024-05-01', 'mass_pro': '2024-06-01'},
        'custom_milestones': [
            {'id': 'm1', 'name': 'Kickoff Meeting', 'date': '2023-12-01', 'is_completed': True},
            {'id': 'm2', 'name': 'Design Freeze', 'date': '2024-01-05', 'is_completed': True},
        ],
    },
    {
        'id': 'prj2', 'code': 'P-2024-02', 'customer': 'Hyundai',
        'name': 'EV Battery Line Setup', 'model': 'Ioniq 5',
        'description': 'New battery pack assembly station.', 'year': '2024',
        'project_manager': 'Chris Evans', 'budget_allocation': 8_500_000_000,
        'status': 'Active',
        'schedule': {'die_go': '2024-02-01', 't0': '2024-03-01', 'pp1': '2024-04-01',
                     'pp2': '2024-05-01', 'pp3': '2024-05-20', 'mass_pro': '2024-07-15'},
        'custom_milestones': [],
    },
    {
        'id': 'prj3', 'code': 'P-2024-03', 'customer': 'Internal',
        'name': 'AMR Fleet Upgrade', 'model': 'AGV-X1',
        'description': 'Upgrading logic boards for all warehouse AMRs.', 'year': '2024',
        'project_manager': 'Mark Ruffalo', 'budget_allocation': 1_200_000_000,
        'status': 'Draft',
        'schedule': {'die_go': '2024-06-01', 't0': '2024-07-01', 'pp1': '',
                     'pp2': '', 'pp3': '', 'mass_pro': '2024-12-01'},
        'custom_milestones': [],
    },
]

MOCK_BUDGETS = [
    {
        'id': 'bp1', 'plan_number': 'BP-2024-001', 'start_year': 2024, 'end_year': 2025,
        'department_id': 'dept1', 'business_category_id': 'cat1', 'io_no': 'io1',
        'cost_center': 'cc1', 'project_id': 'prj1', 'customer_id': 'CUST01',
        'plant_id': 'pl1', 'pic': 'John Doe', 'investment_type': 'Capex',
        'status': 'Approved', 'created_at': '2024-01-15',
        'items': [
            {'id': 'bpi1', 'internal_no': 'INT-01', 'machine_name': 'Auto Crimping Machine Alpha',
             'process': 'Final Assy', 'brand': 'Komax', 'qty': 2, 'uom': 'Unit',
             'estimation_cost_unit': 750_000_000, 'estimation_cost_total': 1_500_000_000,
             'currency': 'IDR', 'description': 'High speed crimping', 'fiscal_year': 2024},
            {'id': 'bpi2', 'internal_no': 'INT-02', 'machine_name': 'Conveyor Belt System',
             'process': 'Final Assy', 'brand': 'Local', 'qty': 1, 'uom': 'Set',
             'estimation_cost_unit': 300_000_000, 'estimation_cost_total': 300_000_000,
             'currency': 'IDR', 'description': '6 meter conveyor', 'fiscal_year': 2025},
        ],
    },
    {
        'id': 'bp2', 'plan_number': 'BP-2024-002', 'start_year': 2024, 'end_year': 2024,
        'department_id': 'dept2', 'business_category_id': 'cat3', 'io_no': 'io3',
        'cost_center': 'cc2', 'project_id': 'prj2', 'customer_id': 'CUST02',
        'plant_id': 'pl2', 'pic': 'Jane Smith', 'investment_type': 'Capex',
        'status': 'Approved', 'created_at': '2024-02-10',
        'items': [
            {'id': 'bpi3', 'internal_no': 'INT-03', 'machine_name': 'Battery Tester',
             'process': 'Preparation', 'brand': 'Hioki', 'qty': 5, 'uom': 'Unit',
             'estimation_cost_unit': 225_000_000, 'estimation_cost_total': 1_125_000_000,
             'currency': 'IDR', 'description': 'Cell testing unit', 'fiscal_year': 2024},
        ],
    },
]

MOCK_PURCHASE_REQUESTS = [
    {
        'id': 'pr1', 'pr_number': 'PR-2403-001', 'pr_date': '2024-03-01',
        'department_id': 'dept1', 'business_category_id': 'cat1', 'io_no': 'io1',
        'cost_center': 'cc1', 'plant_id': 'pl1', 'storage_loc_id': 'SL01',
        'pic': 'John Doe', 'investment_type': 'Capex', 'status': 'Approved',
        'attachments': [], 'history': [],
        'items': [
            {'id': 'pri1', 'item_id': 'ITEM001', 'description': 'Auto Crimping Machine Alpha',
             'budget_plan_item_id': 'bpi1', 'qty': 1, 'uom': 'Unit',
             'est_cost_unit': 740_000_000, 'est_cost_total': 740_000_000, 'currency': 'IDR',
             'supplier_id': 'sup1', 'remarks': 'Urgent for Project X'},
        ],
    },
    {
        'id': 'pr2', 'pr_number': 'PR-2403-005', 'pr_date': '2024-03-15',
        'department_id': 'dept2', 'business_category_id': 'cat3', 'io_no': 'io3',
        'cost_center': 'cc2', 'plant_id': 'pl2', 'storage_loc_id': 'SL01',
        'pic': 'Jane Smith', 'investment_type': 'Capex', 'status': 'Submitted',
        'attachments': [], 'history': [],
        'items': [
            {'id': 'pri2', 'item_id': 'ITEM055', 'description': 'Battery Tester Hioki 3000',
             'budget_plan_item_id': 'bpi3', 'qty': 2, 'uom': 'Unit',
             'est_cost_unit': 230_000_000, 'est_cost_total': 460_000_000, 'currency': 'IDR',
             'supplier_id': 'sup1', 'remarks': 'Requesting 2 units first'},
        ],
    },
]


@lru_cache(maxsize=1)
def _demo_password_hash():
    # Every demo user shares one password, so hash it once
    return generate_password_hash(DEMO_PASSWORD)


def load_mock_data(store: DomainStore) -> DomainStore:
    """Fill an empty store with the demo data set."""
    with store.transaction():
        for row in MOCK_USERS:
            user = User.from_dict(row)
            user.password_hash = _demo_password_hash()
            store.collection('users').append(user)
        for category, rows in MOCK_MASTER_DATA.items():
            store.master_list(category).extend(MasterOption.from_dict(r) for r in rows)
        store.collection('projects').extend(Project.from_dict(r) for r in MOCK_PROJECTS)
        store.collection('budgets').extend(BudgetPlanHeader.from_dict(r) for r in MOCK_BUDGETS)
        store.collection('purchase_requests').extend(
            PurchaseRequest.from_dict(r) for r in MOCK_PURCHASE_REQUESTS)
    logger.info(f'Loaded mock data: {store.counts()}')
    return store


def create_store(seed: bool = True) -> DomainStore:
    """Build a DomainStore, optionally filled with the demo data set."""
    store = DomainStore()
    if seed:
        load_mock_data(store)
    return store
