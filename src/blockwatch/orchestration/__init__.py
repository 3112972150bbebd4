from blockwatch.orchestration.batch import STAGE_ORDER, BatchOrchestrator

__all__ = ["STAGE_ORDER", "BatchOrchestrator"]
