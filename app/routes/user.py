from fastapi import APIRouter, Depends

from core.dependencies import get_current_user
from models.user import User

router = APIRouter(
    prefix="/users",
    tags=["users"]
)


# ==================== USER PROFILE ENDPOINTS ====================

@router.get("/me")
async def get_my_profile(current_user: User = Depends(get_current_user)):
    """
    Obtener perfil del usuario actual.
    """
    return {
        "success": True,
        "status_code": 200,
        "message": "Perfil obtenido exitosamente",
        "data": {
            "id": str(current_user.id),
            "email": current_user.email,
            "full_name": current_user.full_name,
            "role": current_user.role,
            "is_admin": current_user.is_admin,
            "is_active": current_user.is_active,
            "created_at": current_user.created_at.isoformat() if current_user.created_at else None
        }
    }
