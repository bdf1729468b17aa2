import logging

from ..api.variants_client import GeneFetchError, VariantsApiClient
from .state import ResultsState

logger = logging.getLogger(__name__)


class GeneLoader:
    """Expands one gene of the active session with its full variant list."""

    def __init__(self, state: ResultsState, api: VariantsApiClient):
        self.state = state
        self.api = api

    async def load_gene(self, session_id: str, gene_symbol: str) -> bool:
        """
        Fetch and merge the variants of `gene_symbol`.

        Failures are logged and leave the gene unexpanded; nothing else in the
        state changes. Returns True if the variants were committed.
        """
        token = self.state.token_for(session_id)
        if token is None:
            logger.debug("Ignoring gene expansion for inactive session",
                         extra={"session_id": session_id, "gene_symbol": gene_symbol})
            return False

        if self.state.find_gene(gene_symbol) is None:
            logger.warning(f"Gene {gene_symbol} is not in the loaded collection for {session_id}")
            return False

        try:
            variants = await self.api.fetch_gene_variants(session_id, gene_symbol)
        except GeneFetchError as e:
            logger.warning(f"Failed to load variants for gene {e}")
            return False

        return self.state.replace_gene_variants(token, gene_symbol, variants)
