"""
FAQ Ingestion Script.

This script:
1. Loads every .txt / .md / .pdf file from a directory
2. Extracts its text the same way the upload endpoint does
3. Stores each file as one FAQ entry titled by its file name

Usage:
    python ingest_faqs.py [docs_directory]
"""
import sys
import logging
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from services.document_loader import DocumentLoader
from services.faq_store import FaqStore, SupabaseFaqStore
from config import SUPABASE_URL, SUPABASE_KEY

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def ingest(document_loader: DocumentLoader, faq_store: FaqStore) -> int:
    """
    Store every loadable file as a FAQ.

    Returns:
        Number of FAQs created
    """
    documents = document_loader.load_documents()
    for doc in documents:
        faq = faq_store.create(doc.title, doc.content)
        logger.info(f"  - {doc.filename} -> FAQ {faq.id} ({len(doc.content)} chars)")
    return len(documents)


def main():
    """Main ingestion process."""
    docs_path = sys.argv[1] if len(sys.argv) > 1 else str(Path(__file__).parent.parent / "faq_docs")

    try:
        logger.info("=" * 60)
        logger.info(f"Starting FAQ ingestion from {docs_path}")
        logger.info("=" * 60)

        faq_store = SupabaseFaqStore(supabase_url=SUPABASE_URL, supabase_key=SUPABASE_KEY)
        document_loader = DocumentLoader(docs_directory=docs_path)

        created = ingest(document_loader, faq_store)
        if created == 0:
            logger.error(f"No files found! Check that {docs_path} exists and contains .txt, .md or .pdf files")
            sys.exit(1)

        logger.info("=" * 60)
        logger.info(f"INGESTION COMPLETE: {created} FAQs stored")
        logger.info("=" * 60)

    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Ingestion failed: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
