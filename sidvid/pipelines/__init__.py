"""
SidVid Pipelines
"""

from .video_pipeline import VideoPipeline

__all__ = ['VideoPipeline']
