"""Survey segmentation - k-means clustering and ANOVA on student survey responses."""

__version__ = "0.1.0"

from survey_segments.models import AnalysisReport as AnalysisReport
from survey_segments.models import Dataset as Dataset
from survey_segments.models import SurveyRecord as SurveyRecord
from survey_segments.pipeline import run_analysis as run_analysis
