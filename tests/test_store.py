"""Unit tests for the in-memory DomainStore, BaseRepository, seed data and config.

Tests:
- DomainStore: collections, transaction rollback, nested transactions
- BaseRepository: snapshot reads, insert/replace/delete, execute_many
- Seed: demo data counts and hashed passwords
- AppConfig: from_env, validate
"""
import pytest
from unittest.mock import patch

from manuvest.config import AppConfig
from manuvest.core.base_repository import BaseRepository
from manuvest.core.exceptions import ValidationError
from manuvest.core.models import MasterOption, Project, WorkflowStatus
from manuvest.core.seed import DEMO_PASSWORD, create_store
from manuvest.core.store import DomainStore


class ProjectRepo(BaseRepository):
    collection = 'projects'


# ═══════════════════════════════════════════════
# DomainStore
# ═══════════════════════════════════════════════

class TestDomainStore:

    def test_new_store_is_empty(self):
        store = DomainStore()
        counts = store.counts()
        assert counts == {'budgets': 0, 'purchase_requests': 0, 'projects': 0,
                          'users': 0, 'master_data': 0}

    def test_unknown_collection_raises(self):
        store = DomainStore()
        with pytest.raises(KeyError):
            store.collection('invoices')

    def test_projects_is_not_a_stored_master_list(self):
        store = DomainStore()
        with pytest.raises(KeyError):
            store.master_list('projects')

    def test_transaction_commits(self):
        store = DomainStore()
        with store.transaction():
            store.master_list('departments').append(MasterOption(id='d1', code='D', name='Dept'))
        assert len(store.master_list('departments')) == 1

    def test_transaction_rolls_back_on_error(self):
        store = create_store()
        before = store.counts()
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.collection('budgets').clear()
                store.master_list('ios').clear()
                raise RuntimeError('boom')
        assert store.counts() == before
        assert [o.id for o in store.master_list('ios')] == ['io1', 'io2', 'io3']

    def test_rollback_restores_mutated_records(self):
        store = create_store()
        with pytest.raises(ValueError):
            with store.transaction():
                store.collection('purchase_requests')[0].status = WorkflowStatus.CLOSED
                raise ValueError('bad')
        assert store.collection('purchase_requests')[0].status == WorkflowStatus.APPROVED

    def test_inner_failure_rolls_back_outer_block(self):
        store = create_store()
        with pytest.raises(ValueError):
            with store.transaction():
                store.collection('projects').clear()
                with store.transaction():
                    store.collection('users').clear()
                raise ValueError('late failure')
        assert len(store.collection('projects')) == 3
        assert len(store.collection('users')) == 3


# ═══════════════════════════════════════════════
# BaseRepository
# ═══════════════════════════════════════════════

class TestBaseRepository:

    def setup_method(self):
        self.store = create_store()
        self.repo = ProjectRepo(self.store)

    def test_get_by_id(self):
        assert self.repo.get_by_id('prj2').name == 'EV Battery Line Setup'
        assert self.repo.get_by_id('missing') is None

    def test_reads_are_snapshots(self):
        project = self.repo.get_by_id('prj1')
        project.name = 'Changed outside the store'
        assert self.repo.get_by_id('prj1').name == 'Model X Harness Expansion'

    def test_query_all_with_predicate_and_sort(self):
        rows = self.repo.query_all(lambda p: p.status == 'Active',
                                   sort_key=lambda p: p.budget_allocation, reverse=True)
        assert [p.id for p in rows] == ['prj2', 'prj1']

    def test_insert_duplicate_id_raises(self):
        with pytest.raises(ValidationError):
            self.repo.insert(Project(id='prj1', code='X', name='Dup'))

    def test_insert_stores_copy(self):
        project = Project(id='prj9', code='P9', name='Nine')
        self.repo.insert(project)
        project.name = 'Mutated after insert'
        assert self.repo.get_by_id('prj9').name == 'Nine'

    def test_replace_and_delete(self):
        project = self.repo.get_by_id('prj3')
        project.name = 'Renamed'
        assert self.repo.replace(project) is True
        assert self.repo.get_by_id('prj3').name == 'Renamed'
        assert self.repo.delete('prj3') is True
        assert self.repo.delete('prj3') is False
        assert self.repo.replace(project) is False

    def test_execute_many_is_atomic(self):
        def _work(store):
            self.repo.delete('prj1')
            self.repo.delete('prj2')
            raise ValidationError('stop')

        with pytest.raises(ValidationError):
            self.repo.execute_many(_work)
        assert self.repo.exists('prj1')
        assert self.repo.exists('prj2')


# ═══════════════════════════════════════════════
# Seed data
# ═══════════════════════════════════════════════

class TestSeed:

    def test_demo_counts(self):
        counts = create_store().counts()
        assert counts['users'] == 3
        assert counts['projects'] == 3
        assert counts['budgets'] == 2
        assert counts['purchase_requests'] == 2

    def test_unseeded_store(self):
        assert create_store(seed=False).counts()['users'] == 0

    def test_passwords_are_hashed(self):
        store = create_store()
        for user in store.collection('users'):
            assert user.password_hash
            assert user.password_hash != DEMO_PASSWORD

    def test_seed_budget_totals(self):
        store = create_store()
        bp1 = store.collection('budgets')[0]
        assert bp1.total_cost == 1_800_000_000


# ═══════════════════════════════════════════════
# AppConfig
# ═══════════════════════════════════════════════

class TestAppConfig:

    def test_defaults(self):
        config = AppConfig()
        assert config.CATEGORY_ATTRIBUTION == 'request'
        assert config.DASHBOARD_TOP_PROJECTS == 5
        assert config.SEED_MOCK_DATA is True

    @patch.dict('os.environ', {
        'MANUVEST_SECRET_KEY': 's3cret',
        'FLASK_DEBUG': 'true',
        'MANUVEST_CATEGORY_ATTRIBUTION': 'PLAN',
        'MANUVEST_SEED_MOCK_DATA': 'false',
        'MANUVEST_DASHBOARD_TOP_PROJECTS': '3',
    })
    def test_from_env(self):
        config = AppConfig.from_env()
        assert config.SECRET_KEY == 's3cret'
        assert config.DEBUG is True
        assert config.CATEGORY_ATTRIBUTION == 'plan'
        assert config.SEED_MOCK_DATA is False
        assert config.DASHBOARD_TOP_PROJECTS == 3

    def test_validate_rejects_unknown_attribution(self):
        with pytest.raises(ValueError):
            AppConfig(CATEGORY_ATTRIBUTION='department').validate()

    def test_validate_rejects_zero_top_projects(self):
        with pytest.raises(ValueError):
            AppConfig(DASHBOARD_TOP_PROJECTS=0).validate()
