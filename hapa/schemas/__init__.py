from hapa.schemas.auth import LoginRequest, TokenResponse
from hapa.schemas.contact import ContactReply, ContactStatusUpdate, ContactSubmit, FeedbackIn
from hapa.schemas.forms import MediaFormSubmission, SubmissionCreated
from hapa.schemas.posts import CategoryIn, CategoryPatch, PostIn, PostPatch
from hapa.schemas.submissions import BulkUpdateRequest, SubmissionUpdates, UpdateSubmissionRequest
