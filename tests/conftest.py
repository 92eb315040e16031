import os
import sys
import tempfile

import pytest

# Ensure the `src/` directory is on sys.path so we can import `lexcorpus` package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

# Must be set before lexcorpus.config is imported
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["LEXCORPUS_DB_PATH"] = os.path.join(tempfile.gettempdir(), "lexcorpus-tests-no-such.db")
os.environ["FETCH_MIN_DELAY_MS"] = "0"
os.environ.pop("API_KEY", None)
os.environ.pop("SENTRY_DSN", None)

from lexcorpus.ingest.pipeline import write_seed  # noqa: E402
from lexcorpus.ingest.schemas import DefinitionSeed, DocumentSeed, ProvisionSeed  # noqa: E402
from lexcorpus.store.builder import build_corpus  # noqa: E402
from lexcorpus.store.corpus import open_corpus  # noqa: E402

UNIQUE_PHRASE = "lưu trữ dữ liệu"


def sample_seeds():
    """A small corpus covering every document status and both reference kinds."""
    return [
        DocumentSeed(
            id='privacy-act-1988',
            title='Privacy Act 1988',
            title_en='Privacy Act 1988',
            short_name='Privacy Act',
            issued_date='1988-12-14',
            in_force_date='1989-01-01',
            url='https://example.org/privacy-act-1988',
            provisions=[
                ProvisionSeed(provision_ref='s1', section='1', title='Short title',
                              content='This Act may be cited as the Privacy Act 1988.'),
            ],
        ),
        DocumentSeed(
            id='aaa-privacy-notes',
            title='Ghi chú về privacy-act-1988',
            short_name='Ghi chú',
        ),
        DocumentSeed(
            id='constitution-2013',
            title='Hiến pháp 2013',
            title_en='Constitution of the Socialist Republic of Vietnam 2013',
            short_name='Hiến pháp 2013',
            issued_date='2013-11-28',
            in_force_date='2014-01-01',
            url='https://thuvienphapluat.vn/van-ban/Bo-may-hanh-chinh/Hien-phap-nam-2013-215627.aspx',
            provisions=[
                ProvisionSeed(
                    provision_ref='dieu1', chapter='Chương I CHẾ ĐỘ CHÍNH TRỊ', section='1',
                    title='Nước Cộng hòa xã hội chủ nghĩa Việt Nam',
                    content='Điều 1.\nNước Cộng hòa xã hội chủ nghĩa Việt Nam là một nước độc lập, có chủ quyền.',
                ),
                ProvisionSeed(
                    provision_ref='dieu21', chapter='Chương II QUYỀN CON NGƯỜI', section='21',
                    title='Quyền bất khả xâm phạm về đời sống riêng tư',
                    content=(
                        'Điều 21.\n1. Mọi người có quyền bất khả xâm phạm về đời sống riêng tư, '
                        'bí mật cá nhân và bí mật gia đình.  \n\t2. Thư tín, điện thoại, điện tín '
                        'được bảo đảm an toàn và bí mật.'
                    ),
                ),
            ],
        ),
        DocumentSeed(
            id='cybersecurity-law-2018',
            title='Luật An ninh mạng 2018',
            title_en='Cybersecurity Law 2018',
            short_name='Luật ANMT 2018',
            issued_date='2018-06-12',
            in_force_date='2019-01-01',
            provisions=[
                ProvisionSeed(
                    provision_ref='dieu2', chapter='Chương I', section='2', title='Giải thích từ ngữ',
                    content=(
                        'Trong Luật này, các từ ngữ dưới đây được hiểu như sau:\n'
                        '1. An ninh mạng là sự bảo đảm hoạt động trên không gian mạng.\n'
                        '2. Không gian mạng là mạng lưới kết nối của cơ sở hạ tầng thông tin.'
                    ),
                    metadata={'interpretation': True},
                ),
                ProvisionSeed(
                    provision_ref='dieu8', chapter='Chương I', section='8', title='Bảo vệ dữ liệu',
                    content=(
                        'Các biện pháp bảo vệ được xây dựng để implement nguyên tắc của '
                        'Regulation (EU) No 2016/679, Article 5 về xử lý dữ liệu.'
                    ),
                ),
                ProvisionSeed(
                    provision_ref='dieu9', chapter='Chương I', section='9', title='Tham khảo quốc tế',
                    content='Cơ quan quản lý tham khảo Directive 95/46/EC khi ban hành hướng dẫn.',
                ),
                ProvisionSeed(
                    provision_ref='dieu26', chapter='Chương III', section='26', title='Bảo đảm an ninh thông tin',
                    content=f'Doanh nghiệp trong nước phải {UNIQUE_PHRASE} người dùng tại Việt Nam.',
                ),
            ],
            definitions=[
                DefinitionSeed(term='An ninh mạng',
                               definition='sự bảo đảm hoạt động trên không gian mạng.',
                               source_provision='dieu2'),
                DefinitionSeed(term='Không gian mạng',
                               definition='mạng lưới kết nối của cơ sở hạ tầng thông tin.',
                               source_provision='dieu2'),
            ],
        ),
        DocumentSeed(
            id='penal-code-2015',
            title='Bộ luật Hình sự 2015',
            title_en='Penal Code 2015',
            short_name='BLHS 2015',
            status='amended',
            issued_date='2015-11-27',
            in_force_date='2018-01-01',
            provisions=[
                ProvisionSeed(provision_ref='dieu51', section='51', title='Các tình tiết giảm nhẹ',
                              content='Các tình tiết sau đây là tình tiết giảm nhẹ trách nhiệm hình sự.'),
            ],
        ),
        DocumentSeed(
            id='internet-decree-2013',
            title='Nghị định về quản lý dịch vụ Internet',
            short_name='Nghị định 72',
            status='repealed',
            issued_date='2013-07-15',
            in_force_date='2013-09-01',
            provisions=[
                ProvisionSeed(provision_ref='dieu5', section='5', title='Các hành vi bị cấm',
                              content='Lợi dụng việc cung cấp, sử dụng dịch vụ Internet để chống phá Nhà nước.'),
            ],
        ),
    ]


def write_sample_seeds(seed_dir):
    for seed in sample_seeds():
        write_seed(seed, str(seed_dir))
    return str(seed_dir)


@pytest.fixture
def seed_dir(tmp_path):
    return write_sample_seeds(tmp_path / "seed")


@pytest.fixture(scope="session")
def corpus_db(tmp_path_factory):
    base = tmp_path_factory.mktemp("corpus")
    seeds = write_sample_seeds(base / "seed")
    db_path = str(base / "database.db")
    build_corpus(seeds, db_path)
    return db_path


@pytest.fixture(scope="session")
def corpus(corpus_db):
    c = open_corpus(corpus_db)
    yield c
    c.close()
